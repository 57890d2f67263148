"""Runtime configuration read from environment variables.

Every setting is a module-level constant with a development default so the
service can boot locally without extra configuration.
"""

import os


def _flag(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DB_HOST = os.getenv("DB_HOST", "storefront-db")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "storefront")
DB_USER = os.getenv("DB_USER", "storefront_user")
DB_PASSWORD = os.getenv("DB_PASSWORD", "storefront-pass")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_STARTUP_TIMEOUT_SECS = float(os.getenv("DB_STARTUP_TIMEOUT_SECS", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Demo fallbacks in the catalog; production deployments turn these off.
CATALOG_AUTO_CREATE = _flag("CATALOG_AUTO_CREATE")
CATALOG_FALLBACK_ON_ERROR = _flag("CATALOG_FALLBACK_ON_ERROR")
CATALOG_REPLENISH = _flag("CATALOG_REPLENISH")
CATALOG_REPAIR_PRICE = _flag("CATALOG_REPAIR_PRICE")

MAIL_API_URL = os.getenv("MAIL_API_URL", "https://sandbox.api.mailtrap.io/api/send/3733511")
MAIL_API_TOKEN = os.getenv("MAIL_API_TOKEN")
MAIL_FROM_EMAIL = os.getenv("MAIL_FROM_EMAIL", "noreply@ecommercestore.com")
MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "eCommerce Store")
MAIL_TIMEOUT_SECS = float(os.getenv("MAIL_TIMEOUT_SECS", "5"))
MAIL_CIRCUIT_FAIL_THRESHOLD = int(os.getenv("MAIL_CIRCUIT_FAIL_THRESHOLD", "5"))
MAIL_CIRCUIT_RESET_TIMEOUT = float(os.getenv("MAIL_CIRCUIT_RESET_TIMEOUT", "30"))
