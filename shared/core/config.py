import os
from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", 1440))  # 24 hours default

    # Database: DATABASE_URL wins, otherwise postgres is built from the DB_* parts
    DATABASE_URL: str | None = os.getenv("DATABASE_URL")
    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASS: str | None = os.getenv("DB_PASS")
    DB_HOST: str | None = os.getenv("DB_HOST")
    DB_PORT: str | None = os.getenv("DB_PORT")
    DB_NAME: str | None = os.getenv("DB_NAME")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: List[str] = ["http://localhost:8080", "http://127.0.0.1:8002"]

    # Billing
    ENFORCE_CORPORATE_CREDIT_LIMIT: bool = os.getenv(
        "ENFORCE_CORPORATE_CREDIT_LIMIT", "False").lower() == "true"

    # Admin chat assistant (OpenAI compatible gateway)
    AI_GATEWAY_URL: str = os.getenv(
        "AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
    AI_API_KEY: str | None = os.getenv("AI_API_KEY")
    AI_MODEL: str = os.getenv("AI_MODEL", "google/gemini-2.5-flash")
    AI_MAX_RETRIES: int = int(os.getenv("AI_MAX_RETRIES", 3))
    AI_RETRY_BASE_DELAY: float = float(os.getenv("AI_RETRY_BASE_DELAY", 1.0))
    AI_REQUEST_TIMEOUT: int = int(os.getenv("AI_REQUEST_TIMEOUT", 60))
    CHAT_MAX_TOOL_ITERATIONS: int = int(os.getenv("CHAT_MAX_TOOL_ITERATIONS", 5))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()


def build_database_url() -> str:
    if settings.DATABASE_URL:
        return settings.DATABASE_URL
    if settings.DB_HOST:
        return (
            f"postgresql+psycopg2://{settings.DB_USER}:{settings.DB_PASS}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}?sslmode=require"
        )
    return "sqlite:///./folio.db"


FOLIO_DATABASE_URL = build_database_url()
