"""
Django settings for the field editor service.

Every deployment-specific value is read from a ``FIELDEDITOR_*`` environment
variable with a default suitable for local development.
"""

import os
import tempfile
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get(
    "FIELDEDITOR_SECRET_KEY",
    "django-insecure-field-editor-development-key",
)

DEBUG = _env_bool("FIELDEDITOR_DEBUG", default=False)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("FIELDEDITOR_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "drf_spectacular",
    "records",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "fieldeditor.urls"

WSGI_APPLICATION = "fieldeditor.wsgi.application"

# Database
# The record lives in a single SQLite file. IMMEDIATE transactions take the
# write lock when the transaction starts, so concurrent version-checked
# updates queue on the busy timeout instead of failing on lock upgrade.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("FIELDEDITOR_DB_PATH", "/tmp/fields.db"),
        "OPTIONS": {
            "timeout": float(os.environ.get("FIELDEDITOR_DB_TIMEOUT", "20")),
            "transaction_mode": "IMMEDIATE",
        },
        "TEST": {
            # File backed so that threaded tests get independent connections.
            "NAME": os.path.join(tempfile.gettempdir(), "fieldeditor_test.db"),
        },
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# Seed values written on first initialization of an empty store.
FIELD_EDITOR_DEFAULTS = (
    "Default value 1",
    "Default value 2",
    "Default value 3",
    "Default value 4",
)

REST_FRAMEWORK = {
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Field Editor API",
    "DESCRIPTION": "Read and update the shared record with optimistic concurrency control.",
    "VERSION": "0.1.0",
}

LOG_LEVEL = os.environ.get("FIELDEDITOR_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "records": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
