"""
Test settings.

SQLite in memory, local-memory cache, and a fast password hasher. Set
TEST_DATABASE=postgres to run against PostgreSQL, which the concurrent
admission tests need for real row locks.
"""

import os

from .base import *  # noqa: F403

SECRET_KEY = "test-secret-key"
DEBUG = False
ALLOWED_HOSTS = ["testserver"]

if os.environ.get("TEST_DATABASE") != "postgres":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "mci-tests",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LOG_JSON = False
LOG_LEVEL = "WARNING"
CAMP_CAPACITY_MODE = "separate"
GROUP_DEFAULT_MAX_MEMBERS = 10
