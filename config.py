import json
import os


def _env_bool(name, default=False):
    return os.environ.get(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return list(default)
    return [v.strip() for v in raw.split(",") if v.strip()]


class Config:
    # Secret key for sessions / JWT
    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me-in-prod")

    # Database connection; None falls back to sqlite in the instance folder
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    API_PREFIX = os.environ.get("API_PREFIX", "/api")
    CORS_ALLOWED_ORIGINS = _env_list("CORS_ALLOWED_ORIGINS", ["http://localhost:5173", "http://127.0.0.1:5173"])

    # Feature flag service
    FLAGS_STORE = os.environ.get("FLAGS_STORE", "sql")  # "sql" or "memory"
    FLAGS_DEFAULT_ENVIRONMENT = os.environ.get("FLAGS_DEFAULT_ENVIRONMENT", "local")
    FLAGS_REQUIRE_AUTH = _env_bool("FLAGS_REQUIRE_AUTH")
    FLAGS_ADMIN_ROLES = _env_list("FLAGS_ADMIN_ROLES", ["super_admin", "admin"])
    FLAGS_AUDIT_LOG = _env_bool("FLAGS_AUDIT_LOG")
    # key -> name mapping used by `flask flags seed`
    FLAGS_SEED = json.loads(os.environ.get("FLAGS_SEED", "{}"))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    FLAGS_STORE = "sql"
    FLAGS_DEFAULT_ENVIRONMENT = "local"
    FLAGS_REQUIRE_AUTH = False
    FLAGS_AUDIT_LOG = False
    FLAGS_SEED = {"beta_dashboard": "Beta Dashboard", "maintenance_mode": "Maintenance Mode"}
