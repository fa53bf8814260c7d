"""
Application settings for the Attendance & Leave Service.

Values are read from environment variables (or a local .env file) through
pydantic-settings. Import the module-level ``settings`` instance rather than
instantiating Settings directly.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Application
    APP_NAME: str = "attendance-leave-service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./attendance.db"
    DATABASE_ECHO: bool = False

    # Day bucketing. Every day boundary is computed in this zone.
    REFERENCE_TIMEZONE: str = "Asia/Kolkata"

    # Ledger behaviour
    NOTIFICATION_LIMIT: int = 5
    RECONCILE_ON_STARTUP: bool = True

    # Credentials are issued by the external auth service; we only verify them
    JWT_SECRET_KEY: str = "change-me-in-production-not-a-real-secret"
    JWT_ALGORITHM: str = "HS256"

    # Employee directory
    EMPLOYEE_SERVICE_URL: str = "http://localhost:8001"
    EMPLOYEE_SERVICE_TIMEOUT: float = 10.0

    # Kafka
    KAFKA_ENABLED: bool = False
    KAFKA_BOOTSTRAP_SERVERS: str = "localhost:9092"
    KAFKA_CONSUMER_GROUP: str = "attendance-leave-service"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS_ORIGINS is a comma separated string."""
        return [
            origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()
        ]


settings = Settings()
