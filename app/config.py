import os


def normalize_database_url(raw_url: str) -> str:
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql://", 1)
    return raw_url


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-unsafe-key")
    SQLALCHEMY_DATABASE_URI = normalize_database_url(
        os.getenv("DATABASE_URL", "sqlite:///instance/repairdesk.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }
    CACHE_TYPE = os.getenv("CACHE_TYPE", "SimpleCache")
    CACHE_DEFAULT_TIMEOUT = int(os.getenv("CACHE_DEFAULT_TIMEOUT", "120"))
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "500 per day;120 per hour")
    SENTRY_DSN = os.getenv("SENTRY_DSN")

    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "NGN")
    # Fallbacks used until an admin stores payout settings.
    PAYOUT_FREQUENCY = os.getenv("PAYOUT_FREQUENCY", "weekly")
    PAYOUT_MINIMUM_THRESHOLD = os.getenv("PAYOUT_MINIMUM_THRESHOLD", "5000")
    PAYOUT_AUTO_PROCESS = env_flag("PAYOUT_AUTO_PROCESS")

    QUOTE_EXPIRY_AUTO_FORWARD = env_flag("QUOTE_EXPIRY_AUTO_FORWARD", "true")
    REQUIRE_PAYMENT_BEFORE_RETURN = env_flag("REQUIRE_PAYMENT_BEFORE_RETURN", "true")
    DELIVERY_QUOTE_CACHE_SECONDS = int(os.getenv("DELIVERY_QUOTE_CACHE_SECONDS", "600"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CACHE_TYPE = "NullCache"
    RATELIMIT_ENABLED = False
    SENTRY_DSN = None
    DEFAULT_CURRENCY = "NGN"
    PAYOUT_FREQUENCY = "weekly"
    PAYOUT_MINIMUM_THRESHOLD = "5000"
    PAYOUT_AUTO_PROCESS = False
    QUOTE_EXPIRY_AUTO_FORWARD = True
    REQUIRE_PAYMENT_BEFORE_RETURN = True


config_by_env = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
