from __future__ import annotations
from datetime import date
import pytest
from sqlalchemy.exc import OperationalError
from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import AuditLog, Hostel, LaundrySlot, Student, User
from blueprints.auth.routes import reset_rate_limits
from blueprints.laundry import services as svc

D = "2024-06-01"

@pytest.fixture()
def app_ctx():
    reset_rate_limits()
    app = create_app("test")
    with app.app_context():
        db.create_all()
        h1 = Hostel(name="North Block", code="H1")
        h2 = Hostel(name="South Block", code="H2")
        db.session.add_all([h1, h2]); db.session.commit()
        users = {
            email: User(email=email, full_name=name, password_hash=generate_password_hash("pass"), role=role)
            for email, name, role in [
                ("u@example.com", "User U", "STUDENT"),
                ("v@example.com", "User V", "STUDENT"),
                ("w@example.com", "User W", "STUDENT"),
                ("admin@example.com", "Admin", "ADMIN"),
            ]
        }
        db.session.add_all(users.values()); db.session.commit()
        db.session.add_all([
            Student(user_id=users["u@example.com"].id, student_id="STU-U", hostel_id=h1.id),
            Student(user_id=users["v@example.com"].id, student_id="STU-V", hostel_id=h1.id),
            Student(user_id=users["w@example.com"].id, student_id="STU-W", hostel_id=h2.id),
        ])
        d = date(2024, 6, 1)
        db.session.add_all([
            LaundrySlot(hostel_id=h1.id, machine_number=1, date=d, time_slot="morning-1"),
            LaundrySlot(hostel_id=h1.id, machine_number=2, date=d, time_slot="morning-1"),
            LaundrySlot(hostel_id=h1.id, machine_number=2, date=d, time_slot="afternoon-1"),
            LaundrySlot(hostel_id=h1.id, machine_number=1, date=date(2024, 6, 2), time_slot="evening-1"),
            LaundrySlot(hostel_id=h2.id, machine_number=1, date=d, time_slot="morning-1"),
        ])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(app_ctx):
    return app_ctx.test_client()

def login_as(client, email, password="pass"):
    r = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200
    return r.get_json()["user"]

def _book(client, machine=1, day=D, label="morning-1"):
    return client.post("/api/v1/laundry", json={"machine_number": machine, "date": day, "time_slot": label})

def test_requires_login(client):
    assert client.get("/api/v1/laundry").status_code == 401
    r = _book(client)
    assert r.status_code == 401
    assert r.get_json()["code"] == "unauthorized"

def test_list_with_date_filter(client):
    login_as(client, "u@example.com")
    r = client.get("/api/v1/laundry")
    assert r.status_code == 200
    assert len(r.get_json()) == 4

    r = client.get(f"/api/v1/laundry?date={D}")
    items = r.get_json()
    assert [(s["time_slot"], s["machine_number"]) for s in items] == [
        ("morning-1", 1), ("morning-1", 2), ("afternoon-1", 2),
    ]
    assert all(s["status"] == "available" and s["student_id"] is None for s in items)

    assert client.get("/api/v1/laundry?date=not-a-date").status_code == 422

def test_book_then_duplicate_same_day(client):
    me = login_as(client, "u@example.com")
    r = _book(client)
    assert r.status_code == 200
    js = r.get_json()
    assert js["status"] == "booked"
    assert js["student_id"] == me["id"]
    assert js["student"]["student_id"] == "STU-U"

    r2 = _book(client, machine=2, label="afternoon-1")
    assert r2.status_code == 400
    assert r2.get_json()["code"] == "duplicate_booking"
    assert r2.get_json()["error"] == "You already have a booking for this date"

def test_book_taken_slot(client):
    login_as(client, "u@example.com")
    assert _book(client).status_code == 200
    client.post("/api/v1/auth/logout")

    login_as(client, "v@example.com")
    r = _book(client)
    assert r.status_code == 409
    assert r.get_json()["code"] == "slot_unavailable"

def test_book_unknown_slot(client):
    login_as(client, "u@example.com")
    r = _book(client, machine=7)
    assert r.status_code == 404
    assert r.get_json()["code"] == "slot_not_found"

@pytest.mark.parametrize("body", [
    {"machine_number": 0, "date": D, "time_slot": "morning-1"},
    {"machine_number": 1, "date": "01/06/2024", "time_slot": "morning-1"},
    {"machine_number": 1, "date": D, "time_slot": "midnight"},
    {"machine_number": 1, "date": D, "time_slot": "morning-1", "status": "booked"},
    {"machine_number": 1, "date": D},
    {"machine_number": True, "date": D, "time_slot": "morning-1"},
    {"machine_number": "1", "date": D, "time_slot": "morning-1"},
    {"machine_number": 1.0, "date": D, "time_slot": "morning-1"},
    {"machine_number": 1, "date": 1717200000, "time_slot": "morning-1"},
    {"machine_number": 1, "date": D, "time_slot": 1},
])
def test_book_validation(client, body):
    login_as(client, "u@example.com")
    r = client.post("/api/v1/laundry", json=body)
    assert r.status_code == 422
    assert r.get_json()["code"] == "validation_error"

def test_book_without_body(client):
    login_as(client, "u@example.com")
    r = client.post("/api/v1/laundry", data="nope", content_type="text/plain")
    assert r.status_code == 400
    assert r.get_json()["error"] == "Missing required fields"

def test_cancel_flow(client):
    login_as(client, "u@example.com")
    slot_id = _book(client).get_json()["id"]
    client.post("/api/v1/auth/logout")

    # чужую бронь отменить нельзя
    login_as(client, "v@example.com")
    r = client.patch(f"/api/v1/laundry/{slot_id}")
    assert r.status_code == 403
    assert r.get_json()["code"] == "not_authorized"
    assert client.get(f"/api/v1/laundry/{slot_id}").get_json()["status"] == "booked"
    client.post("/api/v1/auth/logout")

    login_as(client, "u@example.com")
    r = client.patch(f"/api/v1/laundry/{slot_id}")
    assert r.status_code == 200
    js = r.get_json()
    assert js["status"] == "available" and js["student_id"] is None and js["student"] is None

    # повторная отмена — слот уже свободен
    r = client.patch(f"/api/v1/laundry/{slot_id}")
    assert r.status_code == 409

def test_detail_and_hostel_scope(client):
    login_as(client, "u@example.com")
    slot_id = _book(client).get_json()["id"]
    r = client.get(f"/api/v1/laundry/{slot_id}")
    assert r.status_code == 200
    js = r.get_json()
    assert js["hostel"] == {"name": "North Block", "code": "H1"}
    assert js["student"]["full_name"] == "User U"
    assert js["student"]["email"] == "u@example.com"
    client.post("/api/v1/auth/logout")

    login_as(client, "w@example.com")
    assert client.get(f"/api/v1/laundry/{slot_id}").status_code == 404
    assert client.patch(f"/api/v1/laundry/{slot_id}").status_code == 404
    assert client.get("/api/v1/laundry/999").get_json()["code"] == "slot_not_found"

def test_student_record_missing(client):
    login_as(client, "admin@example.com")
    r = client.get("/api/v1/laundry")
    assert r.status_code == 404
    assert r.get_json()["code"] == "student_not_found"

def test_board(client):
    login_as(client, "u@example.com")
    r = client.get(f"/api/v1/laundry/board?date={D}")
    assert r.status_code == 200
    js = r.get_json()
    assert js["date"] == D and js["has_booking"] is False
    assert [g["time_slot"] for g in js["groups"]] == ["morning-1", "afternoon-1"]
    assert js["groups"][0]["display"] == "6:00 AM - 7:00 AM"
    assert [s["machine_number"] for s in js["groups"][0]["slots"]] == [1, 2]
    assert js["groups"][0]["slots"][0]["presentation"]["tone"] == "success"

    _book(client, machine=2, label="afternoon-1")
    js = client.get(f"/api/v1/laundry/board?date={D}").get_json()
    assert js["has_booking"] is True
    assert js["groups"][1]["slots"][0]["presentation"]["label"] == "Booked"

def test_audit_logs_admin_only(client):
    login_as(client, "u@example.com")
    slot_id = _book(client).get_json()["id"]
    assert client.get("/api/v1/admin/audit-logs").status_code == 403
    client.post("/api/v1/auth/logout")

    login_as(client, "admin@example.com")
    r = client.get("/api/v1/admin/audit-logs?entity=laundry_slot")
    assert r.status_code == 200
    items = r.get_json()["items"]
    assert items[0]["action"] == "laundry.book" and items[0]["entity_id"] == slot_id

def test_csrf_enforced_when_enabled(app_ctx):
    app_ctx.config["WTF_CSRF_ENABLED"] = True
    client = app_ctx.test_client()
    r = client.post("/api/v1/auth/login", json={"email": "u@example.com", "password": "pass"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "csrf_failed"

    token = client.get("/api/v1/csrf").get_json()["csrf"]
    r = client.post("/api/v1/auth/login", json={"email": "u@example.com", "password": "pass"},
                    headers={"X-CSRFToken": token})
    assert r.status_code == 200
    r = _book(client)
    assert r.status_code == 400
    r = client.post("/api/v1/laundry", json={"machine_number": 1, "date": D, "time_slot": "morning-1"},
                    headers={"X-CSRFToken": token})
    assert r.status_code == 200

# ---------- сбой хранилища -> 500 ----------
def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

def _slot_state(slot_id):
    db.session.expire_all()
    s = db.session.get(LaundrySlot, slot_id)
    return s.status, s.student_id, s.updated_at

def test_book_store_failure_is_500(client, monkeypatch):
    login_as(client, "u@example.com")
    h1 = Hostel.query.filter_by(code="H1").first()
    slot = LaundrySlot.query.filter_by(hostel_id=h1.id, machine_number=1, date=date(2024, 6, 1),
                                       time_slot="morning-1").first()
    before = _slot_state(slot.id)

    monkeypatch.setattr(db.session, "commit", _failing_commit)
    r = _book(client)
    monkeypatch.undo()

    assert r.status_code == 500
    assert r.get_json() == {"error": "Internal server error", "code": "internal_error"}
    assert _slot_state(slot.id) == before
    assert AuditLog.query.count() == 0

def test_cancel_store_failure_is_500(client, monkeypatch):
    login_as(client, "u@example.com")
    slot_id = _book(client).get_json()["id"]
    before = _slot_state(slot_id)

    monkeypatch.setattr(db.session, "commit", _failing_commit)
    r = client.patch(f"/api/v1/laundry/{slot_id}")
    monkeypatch.undo()

    assert r.status_code == 500
    assert r.get_json()["code"] == "internal_error"
    assert _slot_state(slot_id) == before
    assert [a.action for a in AuditLog.query.all()] == ["laundry.book"]

def test_unexpected_store_error_in_read_is_500(client, monkeypatch):
    login_as(client, "u@example.com")

    def boom(**kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))
    monkeypatch.setattr(svc, "list_slots", boom)

    r = client.get("/api/v1/laundry")
    assert r.status_code == 500
    assert r.get_json() == {"error": "Internal server error", "code": "internal_error"}
