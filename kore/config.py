import os
from typing import List, Optional

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class AuthConfig:
    """
    Token verification options.

    Built once when the app is created and handed to the auth dependency
    through ``app.state``; nothing reads these values from the environment
    after that.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
    ):
        if not secret or len(secret) < 10:
            raise ValueError("JWT secret must be at least 10 characters long")

        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience


class Settings:
    # -------------------------------------------------------
    # Project
    # -------------------------------------------------------
    PROJECT_NAME: str = "Kore Moderation API"
    ENV: str = os.getenv("ENV", "dev")

    # -------------------------------------------------------
    # Database
    # -------------------------------------------------------
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./kore.db"
    )

    # Hosted Postgres hands out postgres:// but SQLAlchemy needs postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

    # -------------------------------------------------------
    # Authentication / JWT (verification only)
    # -------------------------------------------------------
    JWT_SECRET: str = os.getenv(
        "JWT_SECRET",
        "supersecretlocalkey123"   # Only used for local dev
    )
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_AUDIENCE: Optional[str] = os.getenv("JWT_AUDIENCE") or None

    # -------------------------------------------------------
    # HTTP
    # -------------------------------------------------------
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", 50))

    # -------------------------------------------------------
    # Logging
    # -------------------------------------------------------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def auth_config(self) -> AuthConfig:
        return AuthConfig(
            secret=self.JWT_SECRET,
            algorithm=self.JWT_ALGORITHM,
            audience=self.JWT_AUDIENCE,
        )


# Single instance that is imported everywhere
settings = Settings()
