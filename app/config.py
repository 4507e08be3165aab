# app/config.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env", extra="allow")

    # Environment
    environment: str = "development"

    # Database (sqlite for local runs, MySQL when MYSQL_HOST is set)
    database_url: Optional[str] = None
    mysql_host: Optional[str] = None
    mysql_port: int = 3306
    mysql_user: Optional[str] = None
    mysql_password: Optional[str] = None
    mysql_database: Optional[str] = None

    # CORS / client
    allowed_origins: str = ""
    client_url: str = "http://localhost:3000"

    # Email provider: gmail | outlook | smtp | resend | brevo
    email_service: str = "gmail"
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    email_from_name: str = "Dearly 💌"
    email_smtp_port: int = 587
    email_use_secure: bool = False
    smtp_host: Optional[str] = None
    resend_api_key: Optional[str] = None
    brevo_api_key: Optional[str] = None
    email_timeout_seconds: float = 20.0

    # Cron
    cron_secret: Optional[str] = None

    # Firebase (auth and storage)
    firebase_project_id: Optional[str] = None
    firebase_credentials_file: Optional[str] = None
    firebase_storage_bucket: Optional[str] = None

    # Blob storage: Firebase Storage when FIREBASE_STORAGE_BUCKET is set, else a local dir served under /static
    storage_dir: str = "static"
    public_base_url: str = ""
    music_max_bytes: int = 10 * 1024 * 1024
    voice_max_bytes: int = 20 * 1024 * 1024
    storage_timeout_seconds: float = 30.0
    storage_retry_deadline_seconds: float = 60.0

    # Letter tokens
    token_ttl_days: int = 365
    token_renewal_window_days: int = 30
    token_max_renewals: int = 10

    # Scheduled email job
    email_check_buffer_seconds: int = 10
    email_startup_buffer_seconds: int = 60
    email_send_delay_seconds: float = 1.0
    email_startup_delay_seconds: int = 5

    # Email verification
    verification_token_ttl_hours: int = 24

    # Rate limits (Redis when REDIS_URL is set, in-memory otherwise)
    redis_url: Optional[str] = None
    token_access_limit: int = 50
    token_access_window_seconds: int = 15 * 60
    token_regenerate_limit: int = 5
    token_regenerate_window_seconds: int = 60 * 60

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    scheduler_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        if self.mysql_host:
            return (
                f"mysql+aiomysql://{self.mysql_user}:{self.mysql_password}"
                f"@{self.mysql_host}:{self.mysql_port}/{self.mysql_database}"
            )
        return "sqlite+aiosqlite:///./dearly.db"

    @property
    def origin_list(self) -> List[str]:
        return [o.strip().lower() for o in self.allowed_origins.split(",") if o.strip()]

settings = Settings()
