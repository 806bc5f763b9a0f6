"""Application configuration loaded from environment variables."""

from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import ConfigDict, computed_field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    ENV: str = "dev"
    DEBUG: bool = False
    # Which bus consumers this process runs: route, product, notification, approval, all
    SERVICE_NAME: str = "all"

    # Database connection components
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "inventory"
    POSTGRES_PASSWORD: str = "inventory"
    POSTGRES_DB: str = "inventory"

    # Allow DATABASE_URL to be set directly, or construct from components
    DATABASE_URL: str | None = None

    @computed_field  # type: ignore[misc]
    @property
    def database_url(self) -> str:
        """Get database URL, either from DATABASE_URL env var or construct from components."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        encoded_password = quote_plus(str(self.POSTGRES_PASSWORD), safe="")
        encoded_user = quote_plus(str(self.POSTGRES_USER), safe="")
        encoded_host = quote_plus(str(self.POSTGRES_HOST), safe="")
        encoded_db = quote_plus(str(self.POSTGRES_DB), safe="")
        return (
            f"postgresql+psycopg2://{encoded_user}:{encoded_password}"
            f"@{encoded_host}:{self.POSTGRES_PORT}/{encoded_db}"
        )

    # RabbitMQ
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_EXCHANGE: str = "inventory-events"
    RABBITMQ_RECONNECT_INTERVAL: int = 10  # seconds between recovery attempts
    RABBITMQ_PREFETCH_COUNT: int = 1  # handlers run sequentially per queue

    @computed_field  # type: ignore[misc]
    @property
    def rabbitmq_url(self) -> str:
        """AMQP URL built from the RABBITMQ_* components."""
        user = quote_plus(self.RABBITMQ_USER, safe="")
        password = quote_plus(self.RABBITMQ_PASSWORD, safe="")
        vhost = quote_plus(self.RABBITMQ_VHOST, safe="")
        return f"amqp://{user}:{password}@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}/{vhost}"

    # Queues (one durable queue per consuming service)
    ROUTE_LEDGER_QUEUE: str = "route-product-created"
    PRODUCT_TRANSFER_QUEUE: str = "product-transfers"
    NOTIFICATION_QUEUE: str = "notification-queue"

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "inventory-identity"
    JWT_AUDIENCE: str = "inventory-services"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    SYSTEM_TOKEN_EXPIRE_MINUTES: int = 5  # approval executor credential lifetime

    # Token refresh guard
    TOKEN_REFRESH_COOLDOWN_SECONDS: float = 5.0
    TOKEN_REFRESH_LOCK_TIMEOUT_SECONDS: float = 10.0
    TOKEN_REFRESH_BUFFER_MINUTES: int = 5  # refresh tokens expiring sooner than this

    # Service URLs
    PRODUCT_SERVICE_URL: str = "http://localhost:5001"
    ROUTE_SERVICE_URL: str = "http://localhost:5002"
    APPROVAL_SERVICE_URL: str = "http://localhost:5003"
    IDENTITY_SERVICE_URL: str = "http://localhost:5000"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Images
    IMAGE_STORAGE_PATH: str = "./storage/images/routes"
    IMAGE_URL_PREFIX: str = "/images/routes"
    IMAGE_MAX_BYTES: int = 5 * 1024 * 1024
    PRODUCT_IMAGE_STORAGE_PATH: str = "./storage/images/products"
    PRODUCT_IMAGE_URL_PREFIX: str = "/images/products"

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=[".env", "../.env"],  # Try .env in current dir first, then parent dir
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
