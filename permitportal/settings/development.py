"""Development settings: local SQLite file, console email."""
import os

os.environ.setdefault("SECRET_KEY", "dev-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///db.sqlite3")

from .base import *  # noqa: F401, F403

DEBUG = True
ALLOWED_HOSTS = ["localhost", "127.0.0.1"]
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
