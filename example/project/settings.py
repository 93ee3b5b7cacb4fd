"""
Django settings for FotoFacil example project.

This is a minimal working example that demonstrates how to use django-fotofacil
in a real Django project. It also serves as the test settings.

Secrets and Drive credentials come from environment variables. Without
Drive credentials the in-memory storage backend is used.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "example-secret-key-change-in-production")

DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"

ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    # Django contrib
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.admin",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "unfold",
    "unfold.contrib.filters",
    "rest_framework",
    # FotoFacil core
    "fotofacil",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "example.project.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "example.project.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_PATH", BASE_DIR / "db.sqlite3"),
    }
}

AUTH_PASSWORD_VALIDATORS = []

LANGUAGE_CODE = "es-es"
TIME_ZONE = "Europe/Madrid"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

EMAIL_BACKEND = os.environ.get("EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend")
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "fotofacil@example.com")

# Django REST Framework
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_THROTTLE_CLASSES": [],
    "DEFAULT_THROTTLE_RATES": {
        "anon": "100/hour",
        "user": "5000/hour",
        "fotofacil_chunk": "600/minute",
    },
}

# FotoFacil
_DRIVE_CONFIGURED = bool(
    os.environ.get("GOOGLE_SERVICE_ACCOUNT_FILE") or os.environ.get("GOOGLE_SERVICE_ACCOUNT_JSON")
)

FOTOFACIL = {
    "MAX_DAYS_BACK": int(os.environ.get("FOTOFACIL_MAX_DAYS_BACK", "7")),
    "STORAGE_BACKEND": (
        "fotofacil.contrib.drive.adapters.google.GoogleDriveBackend"
        if _DRIVE_CONFIGURED
        else "fotofacil.contrib.drive.adapters.memory.MemoryDriveBackend"
    ),
    "DRIVE_ROOT_FOLDER_ID": os.environ.get("GOOGLE_DRIVE_ROOT_FOLDER_ID", "root"),
    "GOOGLE_SERVICE_ACCOUNT_FILE": os.environ.get("GOOGLE_SERVICE_ACCOUNT_FILE"),
    "GOOGLE_SERVICE_ACCOUNT_INFO": os.environ.get("GOOGLE_SERVICE_ACCOUNT_JSON"),
    "GOOGLE_IMPERSONATE_USER": os.environ.get("GOOGLE_IMPERSONATE_USER"),
    "ADMIN_NOTIFICATION_EMAIL": os.environ.get("ADMIN_NOTIFICATION_EMAIL"),
    "NOTIFICATION_BACKEND": "email",
}

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "fotofacil": {
            "handlers": ["console"],
            "level": os.environ.get("FOTOFACIL_LOG_LEVEL", "INFO"),
        },
    },
}

# Unfold Admin
UNFOLD = {
    "SITE_TITLE": "FotoFacil",
    "SITE_HEADER": "FotoFacil",
    "SIDEBAR": {
        "show_search": True,
        "navigation": "fotofacil.unfold.get_sidebar_navigation",
    },
}
