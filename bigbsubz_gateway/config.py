"""Configuration management using Pydantic Settings"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Backend platform
    backend: Literal["supabase", "sql"] = "supabase"
    supabase_url: str = "http://localhost:54321"
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""

    # SQL backend (local development and tests)
    database_url: str = "sqlite:///./bigbsubz.db"
    jwt_secret: str = "dev-jwt-secret"
    jwt_algorithm: str = "HS256"

    # Cable provider
    cable_provider_mode: Literal["simulated", "http"] = "simulated"
    cable_provider_api_base: str = "http://localhost:8001"
    cable_provider_success_rate: float = 0.9

    # Service
    service_name: str = "bigbsubz-gateway"
    log_level: str = "INFO"
    cors_allow_origin: str = "*"
    history_limit: int = 50

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Client session
    auth_soft_timeout_seconds: float = 3.0


settings = Settings()
