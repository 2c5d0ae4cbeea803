"""Configuration management using pydantic-settings."""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class TokenSettings(BaseModel):
    """Signing parameters for session tokens (read-only after startup)."""

    model_config = ConfigDict(frozen=True)

    secret_key: str
    issuer: str
    expiry_days: int


class LinkSettings(BaseModel):
    """Where emailed links point and how messages are signed."""

    model_config = ConfigDict(frozen=True)

    client_url: str
    confirm_email_path: str
    reset_password_path: str
    application_name: str


class PasswordPolicy(BaseModel):
    """Password rules enforced on registration and reset."""

    model_config = ConfigDict(frozen=True)

    min_length: int = 6
    require_digit: bool = False
    require_lowercase: bool = False
    require_uppercase: bool = False
    require_non_alphanumeric: bool = False


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_path: str = "./data/account_core.db"
    api_prefix: str = "/api/account"
    cors_origins: list[str] = ["http://localhost:4200"]

    # JWT Configuration
    # HS512 wants at least 64 bytes of key material
    jwt_secret_key: str = (
        "change-me-in-production-use-env-var-"
        "this-default-is-only-long-enough-for-hs512-signing"
    )
    jwt_issuer: str = "http://localhost:5000"
    jwt_expiry_days: int = 7

    # Email links
    client_url: str = "http://localhost:4200"
    confirm_email_path: str = "account/confirm-email"
    reset_password_path: str = "account/reset-password"
    application_name: str = "Account Core"

    # One-time action tokens (email confirmation, password reset)
    action_token_lifetime_hours: int = 24
    action_token_max_length: int = 1024

    # Bcrypt work factor (higher = more secure but slower)
    # For tests, use 4 for faster execution while maintaining functionality
    bcrypt_work_factor: int = 12

    # Password policy
    password_min_length: int = 6
    password_require_digit: bool = False
    password_require_lowercase: bool = False
    password_require_uppercase: bool = False
    password_require_non_alphanumeric: bool = False

    # SMTP delivery; an empty host logs messages instead of sending them
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@localhost"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    def token_settings(self) -> TokenSettings:
        return TokenSettings(
            secret_key=self.jwt_secret_key,
            issuer=self.jwt_issuer,
            expiry_days=self.jwt_expiry_days,
        )

    def link_settings(self) -> LinkSettings:
        return LinkSettings(
            client_url=self.client_url,
            confirm_email_path=self.confirm_email_path,
            reset_password_path=self.reset_password_path,
            application_name=self.application_name,
        )

    def password_policy(self) -> PasswordPolicy:
        return PasswordPolicy(
            min_length=self.password_min_length,
            require_digit=self.password_require_digit,
            require_lowercase=self.password_require_lowercase,
            require_uppercase=self.password_require_uppercase,
            require_non_alphanumeric=self.password_require_non_alphanumeric,
        )


settings = Settings()
