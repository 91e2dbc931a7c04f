from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path

# Project root (parent of the library_api package)
PROJECT_DIR = Path(__file__).parent.parent
ENV_FILE = PROJECT_DIR / ".env"

class Settings(BaseSettings):
    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Database settings. database_url wins when set; otherwise a PostgreSQL
    # URL is built from the db_* values, falling back to a local SQLite file.
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None  # Confidential, from .env only
    sqlite_path: str = "library.db"

    # Database SSL settings (PostgreSQL only)
    db_ssl_mode: str = "prefer"  # Options: disable, allow, prefer, require, verify-ca, verify-full
    db_ssl_cert: Optional[str] = None
    db_ssl_key: Optional[str] = None
    db_ssl_root_cert: Optional[str] = None

    # JWT settings - confidential values from .env
    jwt_secret_key: str  # Required from .env (confidential - no default)
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 480

    # Circulation rules
    library_timezone: str = "America/Sao_Paulo"
    default_renewal_days: int = 7
    max_renewal_days: int = 30

    class Config:
        env_file = str(ENV_FILE) if ENV_FILE.exists() else ".env"
        case_sensitive = False

settings = Settings()
