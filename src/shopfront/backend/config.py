"""Configuration management module"""
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
    PydanticBaseSettingsSource,
)


class ServerSettings(BaseModel):
    """Server bind address"""

    host: str = "0.0.0.0"
    port: int = 18888


class CorsSettings(BaseModel):
    """CORS middleware configuration"""

    allow_origins: list[str] = ["http://localhost:3000"]
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]


class DatabaseSettings(BaseModel):
    """Database configuration

    ``url`` defaults to ``{instance_path}/data/shopfront.db`` when unset.
    """

    url: str | None = None
    echo: bool = False


class JwtSettings(BaseModel):
    """JWT signing configuration

    Access tokens and password reset tokens are signed with
    ``access_secret``; refresh tokens with ``refresh_secret``.
    """

    access_secret: str = "change-me-access-secret"
    refresh_secret: str = "change-me-refresh-secret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=15, gt=0)
    refresh_token_expire_days: int = Field(default=7, gt=0)
    password_reset_expire_minutes: int = Field(default=60, gt=0)

    @model_validator(mode="after")
    def secrets_must_differ(self) -> "JwtSettings":
        if self.access_secret == self.refresh_secret:
            raise ValueError("jwt.access_secret and jwt.refresh_secret must differ")
        return self


class EmailSettings(BaseModel):
    """Outbound email configuration

    backend:
        smtp: deliver through the configured SMTP server
        console: log the message instead of sending it (development)
    """

    backend: Literal["smtp", "console"] = "console"
    smtp_host: str = "smtp.example.com"
    smtp_port: int = 465
    use_ssl: bool = True
    sender_email: str = "noreply@example.com"
    sender_password: str = ""
    sender_name: str = "Shopfront"
    verification_token_expire_hours: int = Field(default=24, gt=0)


class SecuritySettings(BaseModel):
    """Password hashing configuration"""

    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class OrderSettings(BaseModel):
    """Order workflow configuration"""

    transaction_timeout_seconds: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    """System configuration settings

    Values come from the instance ``config.toml`` (passed in as init
    arguments) and may be overridden by environment variables such as
    ``SHOPFRONT_JWT__ACCESS_SECRET``.
    """

    app_name: str = "Shopfront"
    app_version: str = "0.1.0"
    public_url: str = "http://localhost:18888"

    server: ServerSettings = ServerSettings()
    cors: CorsSettings = CorsSettings()
    database: DatabaseSettings = DatabaseSettings()
    jwt: JwtSettings = JwtSettings()
    email: EmailSettings = EmailSettings()
    security: SecuritySettings = SecuritySettings()
    orders: OrderSettings = OrderSettings()

    model_config = SettingsConfigDict(
        env_prefix="SHOPFRONT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment variables take precedence over config.toml values"""
        return (
            env_settings,
            dotenv_settings,
            init_settings,
            file_secret_settings,
        )

    def database_url(self, instance_path: Path) -> str:
        """Resolve the async database URL for an instance"""
        if self.database.url:
            return self.database.url
        db_path = instance_path / "data" / "shopfront.db"
        return f"sqlite+aiosqlite:///{db_path}"


def get_config_file(instance_path: Path) -> Path:
    """Get config file path of an instance"""
    return instance_path / "config.toml"


def load_settings(instance_path: Path) -> Settings:
    """Load settings for an instance

    Args:
        instance_path: Instance directory path

    Returns:
        Validated settings (config.toml values overlaid by environment)
    """
    import tomli

    config_file = get_config_file(instance_path)
    config: dict = {}
    if config_file.exists():
        with open(config_file, "rb") as f:
            config = tomli.load(f)
    return Settings(**config)
