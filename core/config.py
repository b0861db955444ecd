from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Estate Listings API"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
    Property listing API for buying and renting homes.

    ## Features
    * Listing search by city, type, property category, bedrooms and price range
    * Listing details with the owner's profile and saved status
    * Listing creation and removal for authenticated owners

    ## Rate Limits
    * Posts: 5 listings per minute
    """
    DOCS_URL: str = "/docs"
    REDOC_URL: str = "/redoc"
    OPENAPI_URL: str = "/openapi.json"
    OPENAPI_TAGS: list[dict] = [
        {
            "name": "posts",
            "description": "Listing search, retrieval, creation and removal"
        },
        {
            "name": "health",
            "description": "Service liveness and dependency checks"
        },
    ]

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost"]

    # Database
    DATABASE_URI: str | None = None
    DB_USER: str | None = None
    DB_PASS: str | None = None
    DB_NAME: str | None = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_ECHO: bool = False

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URI:
            return self.DATABASE_URI
        if self.DB_USER and self.DB_NAME:
            return f"postgresql://{self.DB_USER}:{self.DB_PASS or ''}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return "sqlite:///./listings.db"

    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    TOKEN_COOKIE_NAME: str = "token"

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    POSTS_PER_MINUTE: int = 5

    # Metrics
    METRICS_ENABLED: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # console | json

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    # .env lives next to main.py
    backend_dir = Path(__file__).resolve().parent.parent

    return Settings(_env_file=backend_dir / ".env")
