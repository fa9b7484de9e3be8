from pydantic import BaseModel, EmailStr
from typing import Optional, Literal


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"


class LoginUserOut(BaseModel):
    id: int
    username: str
    name: Optional[str]
    role: str


class LoginOut(BaseModel):
    auth: TokenOut
    user: LoginUserOut
