"""
Django settings for vendorhubBackend project.

Values come from environment variables so the same module serves local
development, the Celery workers and production containers.
"""

import os
from decimal import Decimal
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY")
if not SECRET_KEY:
    raise ImproperlyConfigured("SECRET_KEY environment variable is required")

DEBUG = os.environ.get("DEBUG", "False").lower() in ("1", "true", "yes")

ALLOWED_HOSTS = [host.strip() for host in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")]

TESTING = False


# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "marketplace",
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

ROOT_URLCONF = "vendorhubBackend.urls"

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

WSGI_APPLICATION = "vendorhubBackend.wsgi.application"
ASGI_APPLICATION = "vendorhubBackend.asgi.application"


# Database

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.postgresql"),
        "NAME": os.environ.get("DB_NAME", "vendorhub"),
        "USER": os.environ.get("DB_USER", "vendorhub"),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "CONN_MAX_AGE": 60,
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"


# Django REST Framework (input validation serializers)

REST_FRAMEWORK = {
    "COERCE_DECIMAL_TO_STRING": False,
}


# Celery / Redis

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_TASK_ALWAYS_EAGER = False

EVENT_BUS_BACKEND = os.environ.get("EVENT_BUS_BACKEND", "redis")
EVENT_BUS_REDIS_URL = os.environ.get("EVENT_BUS_REDIS_URL", CELERY_BROKER_URL)
EVENT_BUS_CHANNEL_PREFIX = os.environ.get("EVENT_BUS_CHANNEL_PREFIX", "vendorhub.events")


# Payments

PAYMENT_PROVIDER = os.environ.get("PAYMENT_PROVIDER", "stripe")
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")

PAYOUT_CURRENCY = os.environ.get("PAYOUT_CURRENCY", "usd")
PAYOUT_MINIMUM_AMOUNT = Decimal(os.environ.get("PAYOUT_MINIMUM_AMOUNT", "10.00"))


# Commission policy (rates are percentages)

DEFAULT_COMMISSION_RATE = Decimal("10")
VENDOR_TYPE_COMMISSION = {
    "brand": Decimal("10"),
    "distributor": Decimal("5"),
}
SHOP_COMMISSION_TIERS = {
    "bronze": {"min_monthly_sales": Decimal("0"), "rate": Decimal("15")},
    "silver": {"min_monthly_sales": Decimal("50000"), "rate": Decimal("20")},
    "gold": {"min_monthly_sales": Decimal("200000"), "rate": Decimal("25")},
}
COMMISSION_TIER_LOOKBACK_MONTHS = 3


# Cart

CART_MAX_LINE_QUANTITY = 100


# Fulfillment routing

ROUTING_SCORING_WEIGHTS = {
    "inventory": 0.25,
    "distance": 0.20,
    "cost": 0.25,
    "time": 0.20,
    "reliability": 0.10,
}
ROUTING_BASE_SHIPPING_CENTS = 799
ROUTING_PREFER_BONUS = 10
ROUTING_MAX_ALTERNATIVES = 3


# Age verification

AGE_VERIFICATION_SESSION_HOURS = 24
DEFAULT_AGE_THRESHOLD = 21


# Observability

TRACING_ENABLED = os.environ.get("TRACING_ENABLED", "False").lower() in ("1", "true", "yes")
SERVICE_NAME = "vendorhub"


# Logging

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} [{levelname}] {name}: {message}",
            "style": "{",
        },
        "simple": {
            "format": "[{levelname}] {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "marketplace": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "infrastructure": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
