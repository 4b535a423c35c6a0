from pathlib import Path
import os

import dj_database_url
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")  # explicit .env location

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY") or os.getenv("SECRET_KEY") or "dev-key"


def _get_bool_env(name: str, default: bool) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.lower() in {"1", "true", "yes", "on"}


def _get_list_env(name: str) -> list[str]:
    raw_value = os.getenv(name, "")
    if not raw_value:
        return []
    parts = raw_value.replace(";", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


DEBUG = _get_bool_env("DJANGO_DEBUG", _get_bool_env("DEBUG", True))

ALLOWED_HOSTS = list(
    dict.fromkeys(["localhost", "127.0.0.1"] + _get_list_env("DJANGO_ALLOWED_HOSTS"))
)

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "billing_core",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "billing_core.middleware.CurrentCompanyMiddleware",
]

ROOT_URLCONF = "billing_project.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# Before the very first migrate the custom user must be in place
AUTH_USER_MODEL = "billing_core.User"

# ---------- Transaction engine ----------
# Upper bound for lock waits / statements inside one atomic unit
BILLING_TRANSACTION_TIMEOUT_SECONDS = int(
    os.getenv("BILLING_TRANSACTION_TIMEOUT_SECONDS", "30")
)
# Accepted fiscal years for document numbering: [min, current + ahead]
BILLING_MIN_DOCUMENT_YEAR = int(os.getenv("BILLING_MIN_DOCUMENT_YEAR", "2000"))
BILLING_MAX_YEARS_AHEAD = int(os.getenv("BILLING_MAX_YEARS_AHEAD", "10"))

default_db = "sqlite:///" + str((BASE_DIR / "db.sqlite3").resolve())
database_url = os.getenv("DATABASE_URL", default_db)
DATABASES = {"default": dj_database_url.parse(database_url)}

if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":
    # sqlite3 "timeout" bounds how long a writer waits for the database lock
    DATABASES["default"].setdefault("OPTIONS", {})
    DATABASES["default"]["OPTIONS"]["timeout"] = BILLING_TRANSACTION_TIMEOUT_SECONDS
    # take the write lock at BEGIN: deferred transactions that read and then
    # write fail with "database is locked" instead of waiting for "timeout"
    DATABASES["default"]["OPTIONS"]["transaction_mode"] = "IMMEDIATE"
    # file-backed test database so worker threads share one store
    DATABASES["default"]["TEST"] = {
        "NAME": os.getenv("TEST_DATABASE_NAME", str(BASE_DIR / "test_db.sqlite3"))
    }

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------- Celery (audit events are dispatched after commit) ----------
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND") or None
# Run tasks inline in dev/tests unless a real broker is configured
CELERY_TASK_ALWAYS_EAGER = _get_bool_env("CELERY_TASK_ALWAYS_EAGER", DEBUG)
CELERY_TASK_IGNORE_RESULT = True

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "billing_core": {
            "handlers": ["console"],
            "level": os.getenv("BILLING_LOG_LEVEL", "INFO"),
        },
    },
}
