"""Application configuration using Pydantic Settings"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    environment: str = "development"

    # Database
    database_url: str = "sqlite+aiosqlite:///./modelvault.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # AWS / S3
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_endpoint_url: Optional[str] = None
    s3_images_bucket: str = "model-images"
    s3_models_bucket: str = "models"

    # Display defaults
    placeholder_thumbnail: str = "/sangeet-stage.png"
    max_images_per_version: int = 4
    default_model_category: str = "Uncategorized"
    default_model_status: str = "Draft"
    default_project_status: str = "Active"
    new_project_status: str = "In Progress"

    # Statuses allowed on public portfolio pages
    portfolio_statuses: str = "Approved,Released for Download"

    # Reports
    report_header_fill: str = "FFD4A574"
    report_filename: str = "admin_report.xlsx"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def portfolio_statuses_list(self) -> list[str]:
        """Parse portfolio-safe statuses into a list"""
        return [s.strip() for s in self.portfolio_statuses.split(",") if s.strip()]


# Global settings instance
settings = Settings()
