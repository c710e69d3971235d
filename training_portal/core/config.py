from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Training Portal API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"

    # Public base URL of this API; manager approval links in emails point here
    portal_base_url: str = Field(
        default="http://localhost:8000", alias="PORTAL_BASE_URL",
    )

    # Database (PostgreSQL via asyncpg in production or SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./training_portal.db",
        alias="DATABASE_URL",
    )

    # Signed manager / feedback links
    auth_secret: str | None = Field(default=None, alias="AUTH_SECRET")
    token_ttl_days: int = Field(default=10, alias="TOKEN_TTL_DAYS")

    # Shared secret expected by the cron endpoints (Authorization: Bearer ...)
    cron_secret: str | None = Field(default=None, alias="CRON_SECRET")

    # Token-link rate limiting (fixed window)
    rate_limit_requests: int = Field(default=5, alias="RATE_LIMIT_REQUESTS")
    rate_limit_window_seconds: int = Field(default=60, alias="RATE_LIMIT_WINDOW_SECONDS")
    # Comma-separated reverse-proxy addresses whose X-Forwarded-For is honoured
    trusted_proxies: str = Field(default="", alias="TRUSTED_PROXIES")

    # SMTP: leave smtp_host empty to run the mailer in dry-run mode
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_starttls: bool = Field(default=True, alias="SMTP_STARTTLS")
    smtp_timeout: int = Field(default=30, alias="SMTP_TIMEOUT")
    mail_from: str = Field(default="training@localhost", alias="MAIL_FROM")
    mail_from_name: str = Field(default="Training Portal", alias="MAIL_FROM_NAME")
    admin_notification_email: str | None = Field(
        default=None, alias="ADMIN_NOTIFICATION_EMAIL",
    )  # Copied on manager-disagreement notices

    # Google Sheets nomination sync (optional)
    spreadsheet_id: str | None = Field(default=None, alias="SPREADSHEET_ID")
    spreadsheet_range: str = Field(default="Sheet1!A:L", alias="SPREADSHEET_RANGE")
    google_sheets_client_email: str | None = Field(
        default=None, alias="GOOGLE_SHEETS_CLIENT_EMAIL",
    )
    google_private_key: str | None = Field(default=None, alias="GOOGLE_PRIVATE_KEY")
    sheets_timeout: int = Field(default=20, alias="SHEETS_TIMEOUT")

    # Wall-clock offset of the primary user base (IST = +5:30)
    local_utc_offset_minutes: int = Field(default=330, alias="LOCAL_UTC_OFFSET_MINUTES")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def mail_enabled(self) -> bool:
        """Outgoing mail is delivered only when an SMTP host is configured."""
        return bool(self.smtp_host)

    @property
    def trusted_proxy_hosts(self) -> frozenset[str]:
        return frozenset(h.strip() for h in self.trusted_proxies.split(",") if h.strip())

    @property
    def sheets_enabled(self) -> bool:
        return bool(
            self.spreadsheet_id
            and self.google_sheets_client_email
            and self.google_private_key
        )

settings = Settings()
