# backend/shopdesk/config.py
from __future__ import annotations
import os


DEFAULT_DATABASE_URI = "sqlite:///shopdesk.sqlite3"


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Environment default for the backend database. A persisted override in the
    # instance folder (see services/backend_config_service.py) takes precedence.
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Dashboard "low stock" cut-off (strictly less than)
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Name of the JSON file (inside the instance folder) holding the backend override
    BACKEND_CONFIG_FILENAME = "backend_config.json"
