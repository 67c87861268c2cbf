"""Application configuration from environment."""
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Load .env from project root (parent of app/) so env vars are available everywhere
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


class Settings(BaseSettings):
    app_name: str = "User Service"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    port: int = 3000
    base_url: str = "http://localhost:3000"

    database_url: str = "sqlite:///./user_service.db"

    jwt_secret_key: str = "jwt-secret-change-me"
    jwt_algorithm: str = "HS256"

    @field_validator("jwt_secret_key")
    @classmethod
    def strip_jwt_secret(cls, v: str) -> str:
        return (v or "").strip()

    jwt_access_token_expire_minutes: int = 60

    # Downstream service name -> signing secret, e.g. {"product-service": "...", "order-service": null}
    service_token_secrets: dict[str, str | None] = {}

    bcrypt_rounds: int = 10

    admin_registration_key: str = ""
    admin_allowed_domains: str = ""

    @field_validator("admin_registration_key", "admin_allowed_domains", mode="before")
    @classmethod
    def strip_admin(cls, v: str) -> str:
        return (v or "").strip()

    email_verification_expire_hours: int = 24

    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mailgun_base_url: str = "https://api.mailgun.net"
    mailgun_from_email: str = "noreply@example.com"
    mailgun_from_name: str = "User Service"

    @field_validator("mailgun_api_key", "mailgun_domain", "mailgun_base_url", "mailgun_from_email", mode="before")
    @classmethod
    def strip_mailgun(cls, v: str) -> str:
        return (v or "").strip()

    google_client_id: str = ""
    google_client_secret: str = ""
    google_callback_url: str = "http://localhost:3000/auth/google/callback"
    oauth_relink_existing_accounts: bool = True

    service_name: str = "user-service"
    service_description: str = "User Management and Authentication Service"
    service_registry_url: str = ""
    service_address: str = ""

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def admin_allowed_domains_list(self) -> list[str]:
        return [d.strip().lower() for d in self.admin_allowed_domains.split(",") if d.strip()]

    @property
    def mailgun_configured(self) -> bool:
        return bool(self.mailgun_api_key and self.mailgun_domain)

    @property
    def google_oauth_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    class Config:
        env_file = str(_env_path)
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
