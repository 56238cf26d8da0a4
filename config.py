from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF (Flask-WTF): токен отдаёт /api/v1/csrf, фронт шлёт его в заголовке
    WTF_CSRF_TIME_LIMIT = None
    WTF_CSRF_HEADERS = ["X-CSRFToken", "X-CSRF-Token"]

    # лимит попыток логина: AUTH_RL_MAX попыток за AUTH_RL_WINDOW секунд
    AUTH_RL_MAX = 5
    AUTH_RL_WINDOW = 300

    # провижининг слотов прачечной (seed.py)
    LAUNDRY_MACHINES = int(os.getenv("LAUNDRY_MACHINES", "4"))
    LAUNDRY_PROVISION_DAYS = int(os.getenv("LAUNDRY_PROVISION_DAYS", "7"))

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    DEFAULT_USERS = [
        {"email": "admin@example.com", "password": "pass", "role": "ADMIN", "full_name": "Hostel Admin"},
        {"email": "s1@example.com",    "password": "pass", "role": "STUDENT", "full_name": "Demo Student",
         # опционально привязать к общежитию по коду
         "hostel_code": "H1", "student_id": "STU-001"},
    ]

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_TEST_DATA = False
    DEFAULT_USERS = []
    WTF_CSRF_ENABLED = False
    LAUNDRY_MACHINES = 2

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_TEST_DATA = False
    DEFAULT_USERS = []

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
