# backend/core/settings.py
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-not-secret")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = []

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "rides",
]

# nothing is persisted; sqlite only keeps the test runner happy
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ride analytics knobs
RIDE_ANALYTICS = {
    # straight-line estimates undershoot real routes; applied to haversine fallbacks only
    "DISTANCE_ADJUSTMENT_FACTOR": float(os.getenv("RIDE_ANALYTICS_DISTANCE_FACTOR", "1.2")),
    "MIN_RIDE_MINUTES": 1.0,
    # one zone for day keys, months, heatmap buckets and date filters
    "TIME_ZONE": os.getenv("RIDE_ANALYTICS_TIME_ZONE", "UTC"),
    "DISTANCE_BUCKETS": [
        ("< 1 km", 0, 1),
        ("1–2 km", 1, 2),
        ("2–3 km", 2, 3),
        ("3–5 km", 3, 5),
        ("5–10 km", 5, 10),
        ("10–20 km", 10, 20),
        ("≥ 20 km", 20, None),
    ],
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "rides": {
            "handlers": ["console"],
            "level": os.getenv("RIDE_ANALYTICS_LOG_LEVEL", "INFO"),
        },
    },
}
