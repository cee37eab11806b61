"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class LoanCoreConfig(BaseSettings):
    """Loan core configuration"""

    model_config = SettingsConfigDict(
        env_prefix="LOANCORE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Database configuration
    database_url: str = "sqlite:///loan_core.db"  # or memory://

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_origins: str = "*"  # Comma separated

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # Admin seeding
    seed_admin: bool = True
    admin_email: str = "admin@loan.com"
    admin_password: str = "change-me-in-production"
    admin_name: str = "Admin User"

    # Business rules configuration
    currency_symbol: str = "₹"
    trend_months: int = 6
    recent_activity_limit: int = 10
    max_document_size_bytes: int = 40 * 1024  # 40KB

    # Feature flags
    enable_audit_logging: bool = True
    enable_notifications: bool = True


# Global configuration instance
config = LoanCoreConfig()


def get_config() -> LoanCoreConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LoanCoreConfig:
    """Reload configuration from environment"""
    global config
    config = LoanCoreConfig()
    return config
