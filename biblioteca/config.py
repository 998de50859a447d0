import os
from dataclasses import dataclass

def _bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

def _int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)

def _default_sqlite_uri() -> str:
    # biblioteca/ -> proyecto/
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    instance_dir = os.path.join(project_root, "instance")
    os.makedirs(instance_dir, exist_ok=True)
    db_path = os.path.join(instance_dir, "biblioteca.db")
    return "sqlite:///" + db_path

@dataclass(frozen=True)
class BaseConfig:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-change-me")
    SQLALCHEMY_DATABASE_URI: str = os.getenv("DATABASE_URL", _default_sqlite_uri())
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    SESSION_COOKIE_HTTPONLY: bool = True
    SESSION_COOKIE_SAMESITE: str = "Lax"
    SESSION_COOKIE_SECURE: bool = _bool(os.getenv("SESSION_COOKIE_SECURE"), default=False)

    # préstamos: límites del formulario original (1..30 días, 14 por defecto)
    MAX_LOAN_DAYS: int = _int(os.getenv("MAX_LOAN_DAYS"), 30)
    DEFAULT_LOAN_DAYS: int = _int(os.getenv("DEFAULT_LOAN_DAYS"), 14)

    SECURITY_EVENTS_ENABLED: bool = _bool(os.getenv("SECURITY_EVENTS_ENABLED"), default=True)
    RATE_LIMIT_ENABLED: bool = _bool(os.getenv("RATE_LIMIT_ENABLED"), default=True)

    # nº de proxies delante de la app; 0 = ignorar X-Forwarded-For
    TRUSTED_PROXY_COUNT: int = _int(os.getenv("TRUSTED_PROXY_COUNT"), 0)

class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True

class ProductionConfig(BaseConfig):
    DEBUG: bool = False

def get_config():
    env = os.getenv("FLASK_ENV", "development").lower()
    if env == "production":
        return ProductionConfig
    return DevelopmentConfig
