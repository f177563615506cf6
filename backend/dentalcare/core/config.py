"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import List
import warnings

INSECURE_SECRET_KEYS = {"dev-secret-key-change-in-production", "secret-key", "change-me"}


class Settings(BaseSettings):
    """Clinic backend settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Dental Clinic API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./dentalcare.db"

    # Security
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720  # 12 hours, one clinic shift

    # First login created when the users table is empty
    BOOTSTRAP_ADMIN_USERNAME: str = "admin"
    BOOTSTRAP_ADMIN_PASSWORD: str = "change-me-now"
    BOOTSTRAP_ADMIN_EMAIL: str = "admin@example.com"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Clinic
    CLINIC_TIMEZONE: str = "UTC"  # year/month part of INV/PO codes
    CURRENCY: str = "USD"

    # Appointment book, local clinic time
    CLINIC_OPENS_AT: str = "09:00"
    CLINIC_CLOSES_AT: str = "17:00"
    APPOINTMENT_SLOT_MINUTES: int = 30

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def database_url(self) -> str:
        """Get properly formatted database URL"""
        url = self.DATABASE_URL
        if url.startswith("file:"):
            return f"sqlite:///{url[5:]}"
        return url

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def validate_security_settings(self):
        """Warn about insecure defaults, refuse them in production"""
        problems = []
        if self.SECRET_KEY in INSECURE_SECRET_KEYS:
            problems.append("Default SECRET_KEY detected. Set SECRET_KEY to a secure random value.")
        elif len(self.SECRET_KEY) < 32:
            problems.append("SECRET_KEY should be at least 32 characters.")
        if self.BOOTSTRAP_ADMIN_PASSWORD == "change-me-now":
            problems.append("Default BOOTSTRAP_ADMIN_PASSWORD in use.")
        if self.is_production and self.DEBUG:
            problems.append("DEBUG mode is enabled in production.")

        for problem in problems:
            if self.is_production:
                raise ValueError(f"CRITICAL: {problem}")
            warnings.warn(f"WARNING: {problem}", UserWarning)

        return True

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

# Only production refuses to start
settings.validate_security_settings()
