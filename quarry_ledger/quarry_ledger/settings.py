"""Quarry ledger settings.

The project only hosts the ledger core (``ledger_core``); screens, exports and
master-data CRUD live elsewhere. We still need the standard Django project
settings (DATABASES, INSTALLED_APPS, LOGGING, ...) so that migrations, the JSON
endpoints, Celery and the test runner work out of the box.
"""

import os
from decimal import Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

# NOTE: for development only. Override through the environment in production.
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-secret-key-change-me")

DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"

ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",

    # Local apps
    "ledger_core",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "quarry_ledger.urls"

WSGI_APPLICATION = "quarry_ledger.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("LEDGER_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Africa/Lagos"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------- Ledger core ----------
# Read through ledger_core.conf.ledger_setting(); missing keys fall back
# to the defaults declared there.
LEDGER = {
    # Well-known chart-of-accounts codes the ledger posts against.
    # They must exist before first use (see `manage.py check_ledger_config`).
    "SYSTEM_ACCOUNTS": {
        "cash": "1001",
        "receivable": "1101",
        "payable": "2001",
        "vat_output": "2101",
        "prepayment": "2103",
        "sales": "4001",
        "salary_expense": "6001",
        "salaries_payable": "2201",
        "paye_payable": "2202",
        "pension_payable": "2203",
        "nhis_payable": "2204",
        "nhf_payable": "2205",
    },
    # "best_effort": keep the business record and log the ledger gap
    # "strict": roll the business operation back when its posting fails
    "AUXILIARY_POSTING_POLICY": os.environ.get("LEDGER_POSTING_POLICY", "best_effort"),
    "NUMBER_RETRY_ATTEMPTS": 3,
    "DEFAULT_VAT_RATE": Decimal("7.5"),
}

# ---------- Celery ----------
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "cache+memory://")
CELERY_TASK_ALWAYS_EAGER = os.environ.get("CELERY_TASK_ALWAYS_EAGER", "1") == "1"
CELERY_TIMEZONE = TIME_ZONE

# ---------- Logging ----------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "ledger_core": {
            "handlers": ["console"],
            "level": os.environ.get("LEDGER_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
