# backend configuration
# loads env vars for the database pool, auth sessions, cors and seeding

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent / ".env")


class Settings(BaseSettings):
    # relational store
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./autitrack.db")
    DB_POOL_SIZE: int = 5
    DB_POOL_TIMEOUT: int = 5
    DB_POOL_RECYCLE: int = 30
    DB_CREATE_TABLES: bool = True

    # auth sessions
    SESSION_BACKEND: str = os.getenv("SESSION_BACKEND", "database")
    SESSION_COOKIE_NAME: str = "autitrack.sid"
    SESSION_MAX_AGE_SECONDS: int = 7 * 24 * 60 * 60
    SESSION_COOKIE_SECURE: bool = False

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # dashboard
    PENDING_REVIEW_WINDOW_HOURS: int = 48

    # seed script
    SEED_PASSWORD: str = os.getenv("SEED_PASSWORD", "password")

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
