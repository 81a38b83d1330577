from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    RECENT_WINDOW_HOURS = int(os.getenv("RECENT_WINDOW_HOURS", "24"))
    # fallback pin when a fetched record carries no usable coordinates (Chennai)
    DEFAULT_LOCATION = (13.0827, 80.2707)
    # starting point of the create form when no recent fix is known (Coimbatore)
    CREATE_DEFAULT_LOCATION = (11.0168, 76.9558)
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000/api/v1")
    CLIENT_TIMEOUT = float(os.getenv("CLIENT_TIMEOUT", "10"))

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    # explicit catalog entries; everything else is computed
    DEFAULT_CLASSIFICATIONS = [
        {"congregation_id": 1, "language_name": "english", "pin_color": 1},
        {"congregation_id": 1, "language_name": "tamil", "pin_color": 2},
    ]

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_TEST_DATA = False
    DEFAULT_CLASSIFICATIONS = []

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_TEST_DATA = False
    DEFAULT_CLASSIFICATIONS = []

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
