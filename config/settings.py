"""
Promotion Registry - Django Settings (Infrastructure Only)
============================================================
Django hosts the durable event store. Registry logic does not
depend on Django; it only receives a RegistryConfig built from
PROMOTION_REGISTRY below.

Every value can be overridden through the environment.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "PROMOTION_SECRET_KEY", "promotion-registry-dev-key-replace-before-deployment"
)

DEBUG = os.environ.get("PROMOTION_DEBUG", "true").lower() in {"1", "true", "yes"}

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "core.event_store",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("PROMOTION_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Promotion Registry ────────────────────────────────────────
# Read by core.config.RegistryConfig.from_settings().
PROMOTION_REGISTRY = {
    "OWNER_ID": os.environ.get("PROMOTION_OWNER_ID", ""),
    "MAX_NAME_LENGTH": int(os.environ.get("PROMOTION_MAX_NAME_LENGTH", "64")),
    "ALLOW_EXPIRED_DELETION": os.environ.get(
        "PROMOTION_ALLOW_EXPIRED_DELETION", "false"
    ),
}

# ── Logging ───────────────────────────────────────────────────
PROMOTION_LOG_LEVEL = os.environ.get("PROMOTION_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "{asctime} {levelname:<8} {name:<28} {message}",
            "datefmt": "%Y-%m-%d %H:%M:%S",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "promotions": {
            "handlers": ["console"],
            "level": PROMOTION_LOG_LEVEL,
            "propagate": False,
        },
    },
}
