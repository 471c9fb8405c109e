"""
Catalog Importer
Centralized Configuration Management

Pydantic settings with environment variable and .env support for the
database connection, the catalog import run and logging.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="catalog", alias="database", description="Database name")
    user: str = Field(default="catalog", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full SQLAlchemy async URL (overrides host/port/db)",
    )

    @property
    def async_url(self) -> str:
        """Async database URL - uses DATABASE_URL if set, otherwise asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class ImportSettings(BaseSettings):
    """Catalog import run configuration"""

    model_config = SettingsConfigDict(env_prefix="IMPORT_")

    source_path: str = Field(default="./db.json", description="Catalog JSON document path")
    category_color: str = Field(default="#3bb77e", description="Color assigned to every category")
    featured_probability: float = Field(default=0.5, ge=0.0, le=1.0, description="Chance a new product is featured")
    stock_min: int = Field(default=10, ge=0, description="Lowest synthesized stock quantity")
    stock_max: int = Field(default=109, ge=0, description="Highest synthesized stock quantity")
    random_seed: Optional[int] = Field(default=None, description="Seed for placeholder fields")
    dry_run: bool = Field(default=False, description="Traverse the document without writing")

    @model_validator(mode="after")
    def validate_stock_range(self) -> "ImportSettings":
        """Stock range must not be inverted"""
        if self.stock_min > self.stock_max:
            raise ValueError("stock_min must be <= stock_max")
        return self


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="catalog-importer", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    importer: ImportSettings = Field(default_factory=ImportSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
