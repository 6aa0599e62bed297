"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Symmetric key used to sign access tokens. Rotating it
            invalidates every outstanding token.
        algorithm: Algorithm used for JWT encoding (HS256)
        access_token_expire_hours: Access token lifetime in hours
        password_reset_expire_hours: Password reset token lifetime in hours
        password_reset_miss_delay_ms: Pause before answering a reset request that
            issues no token, so response times do not reveal registered emails

        # Email settings (optional, emails are skipped when mail_server is empty)
        mail_server: SMTP server hostname
        mail_port: SMTP server port
        mail_username: SMTP server username
        mail_password: SMTP server password
        mail_from: Sender email address
        mail_starttls: Whether to use STARTTLS

        # Frontend settings
        frontend_url: URL of the frontend application, used in reset links
        cors_origins: Origins allowed by the CORS middleware

        # Bootstrap admin settings (optional)
        bootstrap_admin_email: Optional admin email for first admin creation
        bootstrap_admin_password: Optional admin password for first admin creation
        bootstrap_admin_name: Display name for the bootstrap admin

        slow_request_threshold_ms: Requests slower than this are logged as slow
    """
    # Database settings
    database_url: str = "sqlite:///./vetclinic.db"

    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_hours: int = 10

    # Password recovery
    password_reset_expire_hours: int = 24
    password_reset_miss_delay_ms: int = 500

    # Email settings
    mail_server: Optional[str] = None
    mail_port: int = 587
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_from: Optional[str] = None
    mail_starttls: bool = True

    # Frontend settings
    frontend_url: str = "http://localhost:5173"
    cors_origins: List[str] = [
        "http://localhost:5173",  # Frontend development server
        "http://localhost:3000",
    ]

    # Bootstrap admin settings (optional - only used for first admin creation)
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None
    bootstrap_admin_name: str = "System Administrator"

    # Request logging
    slow_request_threshold_ms: int = 1000

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

# Create settings instance
settings = Settings()
