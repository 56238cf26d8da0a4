from __future__ import annotations
import os
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate, login_manager, csrf
from werkzeug.security import generate_password_hash
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # таблица users может ещё не быть создана (alembic upgrade и т.п.)
        if not inspect(db.engine).has_table("users"):
            return

        from models import User, Hostel, Student  # локальный импорт, чтобы избежать циклов
        created = 0
        linked = 0
        for u in app.config.get("DEFAULT_USERS", []):
            user = User.query.filter_by(email=u["email"]).first()
            if not user:
                user = User(
                    email=u["email"],
                    password_hash=generate_password_hash(u["password"]),
                    full_name=u.get("full_name"),
                    role=u["role"],
                    is_active_flag=True,
                )
                db.session.add(user)
                db.session.flush()
                created += 1
            # членство досоздаём и для уже существующих пользователей
            hc = u.get("hostel_code")
            if not hc or Student.query.filter_by(user_id=user.id).first():
                continue
            h = Hostel.query.filter_by(code=hc).first()
            if h:
                db.session.add(Student(user_id=user.id, student_id=u.get("student_id") or f"STU-{user.id:03d}",
                                       hostel_id=h.id))
                linked += 1
        if created or linked:
            db.session.commit()
            app.logger.info("default users seeded",
                            extra={"event": "seed_users", "count": created, "linked": linked})

def register_blueprints(app: Flask) -> None:
    # Жёстко импортируем модуль с маршрутами core перед взятием bp
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp, api_bp as core_api_bp
    from blueprints.auth.routes import api_bp as auth_api_bp
    from blueprints.laundry.routes import api_bp as laundry_api_bp
    from blueprints.admin.routes import api_bp as admin_api_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(core_api_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_api_bp, url_prefix="/api/v1")
    app.register_blueprint(laundry_api_bp, url_prefix="/api/v1")
    app.register_blueprint(admin_api_bp, url_prefix="/api/v1")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.setdefault("SECRET_KEY", "change-me-in-prod")
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # Flask 3: порядок ключей в JSON задаётся через провайдер, не через конфиг
    app.json.sort_keys = False
    # --- изоляция БД в тестах ---
    # pytest всегда выставляет переменную окружения PYTEST_CURRENT_TEST.
    # Делаем БД в памяти, чтобы никакие изменения из одного теста не протекали в другой.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
