"""
Base Django settings for the MCI coordination backend.

Shared configuration for all environments.
"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-based configuration using pydantic-settings."""

    SECRET_KEY: str = "django-insecure-change-me-in-production"
    DEBUG: bool = False
    ALLOWED_HOSTS: list[str] = []

    # Database
    DB_NAME: str = "mci"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Admission control
    CAMP_CAPACITY_MODE: Literal["separate", "combined"] = "separate"
    GROUP_DEFAULT_MAX_MEMBERS: int = 10

    # Throttling
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_LOCKOUT_SECONDS: int = 900
    JOIN_CODE_MAX_ATTEMPTS: int = 10
    JOIN_CODE_WINDOW_SECONDS: int = 300

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = settings.SECRET_KEY

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = settings.DEBUG

ALLOWED_HOSTS = settings.ALLOWED_HOSTS

# Application definition
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    # Local apps
    "apps.core",
    "apps.accounts",
    "apps.audit",
    "apps.incidents",
    "apps.camps",
    "apps.casualties",
    "apps.tasks",
    "apps.resources",
    "apps.groups",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "apps.core.middleware.CorrelationIdMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

AUTH_USER_MODEL = "accounts.Professional"

# Database
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": settings.DB_NAME,
        "USER": settings.DB_USER,
        "PASSWORD": settings.DB_PASSWORD,
        "HOST": settings.DB_HOST,
        "PORT": settings.DB_PORT,
        "ATOMIC_REQUESTS": False,
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Engine configuration
LOG_LEVEL = settings.LOG_LEVEL
LOG_JSON = settings.LOG_JSON
CAMP_CAPACITY_MODE = settings.CAMP_CAPACITY_MODE
GROUP_DEFAULT_MAX_MEMBERS = settings.GROUP_DEFAULT_MAX_MEMBERS
LOGIN_MAX_ATTEMPTS = settings.LOGIN_MAX_ATTEMPTS
LOGIN_LOCKOUT_SECONDS = settings.LOGIN_LOCKOUT_SECONDS
JOIN_CODE_MAX_ATTEMPTS = settings.JOIN_CODE_MAX_ATTEMPTS
JOIN_CODE_WINDOW_SECONDS = settings.JOIN_CODE_WINDOW_SECONDS
