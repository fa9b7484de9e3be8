import os

# app.core.config validates these at import time
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_ACCESS_SECRET_KEY", "test-secret")
os.environ.setdefault("COMPANY_CODE", "15")
