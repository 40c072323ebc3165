import os
from datetime import timedelta
from dotenv import load_dotenv, find_dotenv

# Load .env file in development
env_path = find_dotenv()
load_dotenv(env_path)


def _env_flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


# -----------------------------
# Database config
# -----------------------------
db_config = {
    "host": os.getenv("DB_HOST"),
    "user": os.getenv("DB_USER"),
    "password": os.getenv("DB_PASSWORD"),
    "database": os.getenv("DB_NAME"),
    "port": int(os.getenv("DB_PORT", "3306")),
}


def database_uri() -> str:
    """DATABASE_URL wins; otherwise build a MySQL (PyMySQL) URI from db_config."""
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        if explicit.startswith("mysql://"):
            explicit = "mysql+pymysql://" + explicit[len("mysql://"):]
        return explicit
    return (
        f"mysql+pymysql://{db_config['user']}:{db_config['password']}@"
        f"{db_config['host']}:{db_config['port']}/{db_config['database']}"
    )


# -----------------------------
# Auth token / cookie config
# -----------------------------
jwt_config = {
    "secret": os.getenv("JWT_SECRET"),
    "cookie_name": os.getenv("COOKIE_NAME", "gdip_token"),
    "cookie_secure": _env_flag("COOKIE_SECURE"),
    "csrf_protect": _env_flag("COOKIE_CSRF_PROTECT", "true"),
    "expires_hours": int(os.getenv("JWT_EXPIRES_HOURS", "2")),
}

# -----------------------------
# eBay config
# -----------------------------
ebay_config = {
    "client_id": os.getenv("EBAY_CLIENT_ID"),
    "client_secret": os.getenv("EBAY_CLIENT_SECRET"),
    "env": (os.getenv("EBAY_ENV") or "SANDBOX").upper(),
    "provider": (os.getenv("EBAY_PROVIDER") or "mock").lower(),
    "marketplace_id": os.getenv("EBAY_MARKETPLACE_ID", "EBAY_US"),
}


# -----------------------------
# App-level Config class
# -----------------------------
class Config:
    """
    App-wide configuration (used by create_app).
    Keeps extra runtime settings and safety flags.
    """
    SERVICE_ROLE = os.getenv("SERVICE_ROLE", "driver")

    SQLALCHEMY_DATABASE_URI = database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_timeout": 30,
        "pool_size": 10,
        "connect_args": {"connect_timeout": 10},
    }
    AUTO_CREATE_TABLES = _env_flag("AUTO_CREATE_TABLES", "true")

    JSON_SORT_KEYS = False

    # Signed-token cookie
    JWT_SECRET_KEY = jwt_config["secret"]
    JWT_TOKEN_LOCATION = ["cookies"]
    JWT_ACCESS_COOKIE_NAME = jwt_config["cookie_name"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=jwt_config["expires_hours"])
    JWT_COOKIE_SECURE = jwt_config["cookie_secure"]
    JWT_COOKIE_SAMESITE = "Lax"
    JWT_COOKIE_CSRF_PROTECT = jwt_config["csrf_protect"]
    JWT_SESSION_COOKIE = False

    BCRYPT_LOG_ROUNDS = 12

    # Points policy
    POINTS_ALLOW_NEGATIVE_BALANCE = _env_flag("POINTS_ALLOW_NEGATIVE_BALANCE")
    POINTS_PER_DOLLAR = 100

    # Login throttling (per IP + email)
    LOGIN_MAX_ATTEMPTS = int(os.getenv("LOGIN_MAX_ATTEMPTS", "10"))
    LOGIN_WINDOW_MINUTES = int(os.getenv("LOGIN_WINDOW_MINUTES", "15"))

    # eBay (sponsor side searches the marketplace)
    EBAY_CLIENT_ID = ebay_config["client_id"]
    EBAY_CLIENT_SECRET = ebay_config["client_secret"]
    EBAY_ENV = ebay_config["env"]
    EBAY_PROVIDER = ebay_config["provider"]
    EBAY_MARKETPLACE_ID = ebay_config["marketplace_id"]
    EBAY_SEARCH_LIMIT = 12


class TestConfig(Config):
    """In-process test settings: SQLite, fast hashing, mock marketplace."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AUTO_CREATE_TABLES = True

    JWT_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
    JWT_COOKIE_SECURE = False
    JWT_COOKIE_CSRF_PROTECT = False

    BCRYPT_LOG_ROUNDS = 4
    POINTS_ALLOW_NEGATIVE_BALANCE = False
    EBAY_PROVIDER = "mock"
