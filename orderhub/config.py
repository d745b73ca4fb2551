import os


def _bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


class Config:
    BASE_DIR = os.path.dirname(os.path.dirname(__file__))
    SERVICE_NAME = os.environ.get("SERVICE_NAME", "orders").strip().lower()
    SERVICE_VERSION = "1.0.0"

    DATABASE_URL = os.environ.get("DATABASE_URL")
    DATABASE_DIR = None if DATABASE_URL else os.path.join(BASE_DIR, "database")
    DB_PATH = DATABASE_URL or os.path.join(DATABASE_DIR, "orderhub.db")
    DB_AUTO_INIT = _bool_env("DB_AUTO_INIT", False)

    LOG_JSON = _bool_env("LOG_JSON", True)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    PEER_SERVICE_URL = os.environ.get("PEER_SERVICE_URL", "http://localhost:3001")
    PEER_TIMEOUT_SECONDS = _float_env("PEER_TIMEOUT_SECONDS", 5.0)
    PEER_USER_AGENT = os.environ.get("PEER_USER_AGENT", "orderhub-analytics/1.0.0")

    ANALYTICS_PERIOD_DAYS = _int_env("ANALYTICS_PERIOD_DAYS", 30)
    ANALYTICS_MAX_WORKERS = _int_env("ANALYTICS_MAX_WORKERS", 6)
    TOP_CUSTOMERS_LIMIT = _int_env("TOP_CUSTOMERS_LIMIT", 5)
    REVENUE_MONTHS_BACK = _int_env("REVENUE_MONTHS_BACK", 12)
    COHORT_LIMIT = _int_env("COHORT_LIMIT", 12)
    RECONCILIATION_REVENUE_TOLERANCE = _float_env("RECONCILIATION_REVENUE_TOLERANCE", 0.01)

    EXPECTED_SCHEMA_VERSION = os.environ.get("EXPECTED_SCHEMA_VERSION")

    def __init__(self):
        env = os.environ.get("FLASK_ENV", "development").lower()
        if env == "production" and not self.DATABASE_URL:
            raise RuntimeError("DATABASE_URL is required in production.")
        if self.SERVICE_NAME not in {"orders", "analytics"}:
            raise RuntimeError(f"Unknown SERVICE_NAME: {self.SERVICE_NAME}")
