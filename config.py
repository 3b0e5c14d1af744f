import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.environ.get("ESTATE_IAM_CONFIG", os.path.join(ROOT_PATH, "env.yaml"))

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./estate_iam.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    REDIS_SOCKET_TIMEOUT = float(data.get("REDIS_SOCKET_TIMEOUT", 2.0))
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Session tokens
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    SESSION_TTL_HOURS = int(data.get("SESSION_TTL_HOURS", 24))
    COOKIE_SECURE = bool(data.get("COOKIE_SECURE", False))

    # Registration and password reset
    OTP_TTL_MINUTES = int(data.get("OTP_TTL_MINUTES", 10))
    RESET_TOKEN_TTL_MINUTES = int(data.get("RESET_TOKEN_TTL_MINUTES", 60))
    RESET_URL_BASE = data.get("RESET_URL_BASE", "http://localhost:5173/reset-password")

    # Failed-login lockout
    LOCKOUT_THRESHOLD = int(data.get("LOCKOUT_THRESHOLD", 3))
    LOCKOUT_WINDOW_SECONDS = int(data.get("LOCKOUT_WINDOW_SECONDS", 3 * 60 * 60))

    # Aggregate cache
    CACHE_ENTITY_TTL_SECONDS = int(data.get("CACHE_ENTITY_TTL_SECONDS", 30 * 60))
    CACHE_COLLECTION_TTL_SECONDS = int(data.get("CACHE_COLLECTION_TTL_SECONDS", 60 * 60))

    # Outbound email; an empty SMTP_HOST logs messages instead of sending them
    SMTP_HOST = data.get("SMTP_HOST", "")
    SMTP_PORT = int(data.get("SMTP_PORT", 465))
    SMTP_USER = data.get("SMTP_USER", "")
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", "")
    SMTP_USE_TLS = bool(data.get("SMTP_USE_TLS", False))
    MAIL_FROM = data.get("MAIL_FROM", "no-reply@estate.local")
