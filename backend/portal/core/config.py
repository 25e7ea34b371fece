from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    env: str = "dev"
    log_level: str = "INFO"

    # Required at process start: no defaults
    jwt_secret: str
    admin_emails: str
    database_url: str
    resend_api_key: str

    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7
    reset_token_expire_minutes: int = 60
    password_min_length: int = 6
    bcrypt_rounds: int = 12

    app_url: str = "http://localhost:5173"
    email_from: str = "Portal <onboarding@resend.dev>"
    resend_api_url: str = "https://api.resend.com"
    backend_cors_origins: str = "http://localhost:5173"

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.backend_cors_origins.split(",") if origin.strip()]

    @property
    def admin_email_list(self) -> List[str]:
        return [email.strip().lower() for email in self.admin_emails.split(",") if email.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
