import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=BASE_DIR / ".env")


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no"}


@dataclass(frozen=True)
class AppConfig:
    base_dir: Path
    database_file: str
    database_url: Optional[str]
    secret_key: str
    host: str
    port: int
    log_level: str
    allow_mock_auth: bool
    upload_folder: Path
    max_upload_mb: int
    default_admin_email: str
    default_admin_password: str
    default_admin_name: str
    session_cookie_secure: bool
    session_cookie_samesite: str
    session_cookie_httponly: bool

    @classmethod
    def from_env(cls):
        return cls(
            base_dir=BASE_DIR,
            database_file=os.getenv("DATABASE_FILE", "evalink.db"),
            database_url=os.getenv("DATABASE_URL"),
            secret_key=os.getenv("SECRET_KEY", "default-development-key"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3001")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            allow_mock_auth=_env_bool("ALLOW_MOCK_AUTH", False),
            upload_folder=Path(
                os.getenv("UPLOAD_FOLDER", str(BASE_DIR / "public" / "uploads" / "profiles"))
            ),
            max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "5")),
            default_admin_email=os.getenv("DEFAULT_ADMIN_EMAIL", "admin"),
            default_admin_password=os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123"),
            default_admin_name=os.getenv("DEFAULT_ADMIN_NAME", "Administrator"),
            session_cookie_secure=_env_bool("SESSION_COOKIE_SECURE", False),
            session_cookie_samesite=os.getenv("SESSION_COOKIE_SAMESITE", "Lax"),
            session_cookie_httponly=_env_bool("SESSION_COOKIE_HTTPONLY", True),
        )

    @property
    def static_dir(self):
        return self.base_dir / "public"

    def to_flask_config(self):
        return {
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url
            or f"sqlite:///{self.database_file}",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "SQLALCHEMY_ENGINE_OPTIONS": {"pool_pre_ping": True},
            "HOST": self.host,
            "PORT": self.port,
            "LOG_LEVEL": self.log_level,
            "ALLOW_MOCK_AUTH": self.allow_mock_auth,
            "UPLOAD_FOLDER": str(self.upload_folder),
            "MAX_CONTENT_LENGTH": self.max_upload_mb * 1024 * 1024,
            "DEFAULT_ADMIN_EMAIL": self.default_admin_email,
            "DEFAULT_ADMIN_PASSWORD": self.default_admin_password,
            "DEFAULT_ADMIN_NAME": self.default_admin_name,
            "SESSION_COOKIE_SECURE": self.session_cookie_secure,
            "SESSION_COOKIE_SAMESITE": self.session_cookie_samesite,
            "SESSION_COOKIE_HTTPONLY": self.session_cookie_httponly,
        }
