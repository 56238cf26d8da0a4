"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset            # дропнуть и пересоздать БД + демо-данные
  python seed.py --days 14          # слоты прачечной на 14 дней вперёд
  python seed.py                    # мягкое наполнение недостающих данных (idempotent)
"""
from __future__ import annotations
import argparse
import logging
from datetime import date, timedelta

from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import Hostel, LaundrySlot, Role, Student, User, TIME_WINDOWS

log = logging.getLogger("seed")

def get_or_create(model, defaults=None, **by):
    """Идемпотентное создание по уникальным ключам."""
    inst = db.session.query(model).filter_by(**by).first()
    if inst:
        return inst, False
    data = {}
    if defaults:
        data.update(defaults)
    data.update(by)
    inst = model(**data)
    db.session.add(inst)
    db.session.flush()
    return inst, True

def provision_slots(hostel: Hostel, start: date, days: int, machines: int) -> int:
    """Создаёт недостающие слоты (machine x date x window) для общежития.

    Существующие слоты не трогает, поэтому брони переживают повторный запуск.
    """
    existing = {
        (s.machine_number, s.date, s.time_slot)
        for s in db.session.query(LaundrySlot).filter(
            LaundrySlot.hostel_id == hostel.id,
            LaundrySlot.date >= start,
            LaundrySlot.date < start + timedelta(days=days),
        )
    }
    created = 0
    for offset in range(days):
        d = start + timedelta(days=offset)
        for m in range(1, machines + 1):
            for w in TIME_WINDOWS:
                if (m, d, w.label) in existing:
                    continue
                db.session.add(LaundrySlot(hostel_id=hostel.id, machine_number=m, date=d, time_slot=w.label))
                created += 1
    return created

def seed_demo(days: int, machines: int, start: date | None = None) -> dict:
    start = start or date.today()
    h1, _ = get_or_create(Hostel, code="H1", defaults={"name": "North Block"})
    h2, _ = get_or_create(Hostel, code="H2", defaults={"name": "South Block"})

    admin, _ = get_or_create(User, email="admin@example.com", defaults={
        "password_hash": generate_password_hash("admin"), "role": Role.ADMIN.value, "full_name": "Hostel Admin",
    })
    students = []
    for i, hostel in enumerate((h1, h1, h2), start=1):
        u, _ = get_or_create(User, email=f"student{i}@example.com", defaults={
            "password_hash": generate_password_hash("pass"), "role": Role.STUDENT.value,
            "full_name": f"Student {i}",
        })
        get_or_create(Student, user_id=u.id, defaults={"student_id": f"STU-{i:03d}", "hostel_id": hostel.id})
        students.append(u)

    created = provision_slots(h1, start, days, machines) + provision_slots(h2, start, days, machines)
    db.session.commit()
    return {"hostels": 2, "students": len(students), "slots_created": created}

def main(argv=None):
    p = argparse.ArgumentParser(description="Seed hostel laundry demo data")
    p.add_argument("--reset", action="store_true", help="drop & create all tables")
    p.add_argument("--days", type=int, default=None, help="how many days of slots to provision")
    p.add_argument("--machines", type=int, default=None, help="machines per hostel")
    args = p.parse_args(argv)

    app = create_app()
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        days = args.days or app.config["LAUNDRY_PROVISION_DAYS"]
        machines = args.machines or app.config["LAUNDRY_MACHINES"]
        stats = seed_demo(days=days, machines=machines)
        app.logger.info("seed done", extra={"event": "seed", "count": stats["slots_created"]})
        print(f"Seed OK: {stats}")

if __name__ == "__main__":
    main()
