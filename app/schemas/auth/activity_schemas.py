# app/schemas/auth/activity_schemas.py

from datetime import datetime
from typing import Optional, Literal

from fastapi import Query
from pydantic import BaseModel, ConfigDict


class UserActivityFilters(BaseModel):
    user_id: Optional[int] = Query(None)
    username: Optional[str] = Query(None)
    search: Optional[str] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query("created_at")
    sort_order: Literal["asc", "desc"] = Query("desc")


class UserActivityOut(BaseModel):
    id: int
    user_id: Optional[int]
    username_snapshot: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserActivityListData(BaseModel):
    total: int
    items: list[UserActivityOut]
