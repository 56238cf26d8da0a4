# blueprints/laundry/services.py
from __future__ import annotations
import logging
from datetime import date as dt_date
from typing import List, Optional

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from extensions import db
from models import AuditLog, LaundrySlot, SlotStatus, Student, User
from models.user import utcnow
from .catalog import WINDOW_ORDER, SlotGroup, group_by_time_slot
from .errors import (
    DuplicateBookingError, InternalError, NotAuthorizedError, NotFoundError,
    SlotNotFoundError, SlotUnavailableError, UnauthenticatedError,
)

log = logging.getLogger(__name__)

BOOKED = SlotStatus.BOOKED.value
AVAILABLE = SlotStatus.AVAILABLE.value

# ---------- helpers ----------
def _require_user(user) -> None:
    if user is None or not getattr(user, "is_authenticated", False):
        raise UnauthenticatedError()

def _membership(user) -> Student:
    """Общежитие текущего пользователя. Без записи Student дальше не идём."""
    _require_user(user)
    st: Student | None = Student.query.filter_by(user_id=user.id).first()
    if not st:
        raise NotFoundError()
    return st

def _with_occupant(q):
    return q.options(joinedload(LaundrySlot.occupant).joinedload(User.student))

def _audit(user, action: str, slot_id: int, payload: dict) -> None:
    db.session.add(AuditLog(
        user_id=getattr(user, "id", None),
        action=action, entity="laundry_slot", entity_id=slot_id, payload=payload,
    ))

def _find_in_hostel(st: Student, slot_id: int) -> LaundrySlot:
    slot = _with_occupant(LaundrySlot.query).filter_by(id=slot_id, hostel_id=st.hostel_id).first()
    if not slot:
        raise SlotNotFoundError()
    return slot

# ---------- catalog ----------
def list_slots(*, user, on_date: Optional[dt_date] = None) -> List[LaundrySlot]:
    """Все слоты общежития пользователя (опционально за одну дату)."""
    st = _membership(user)
    q = _with_occupant(LaundrySlot.query).filter(LaundrySlot.hostel_id == st.hostel_id)
    if on_date is not None:
        q = q.filter(LaundrySlot.date == on_date)
    order = case(WINDOW_ORDER, value=LaundrySlot.time_slot, else_=len(WINDOW_ORDER) + 1)
    return q.order_by(LaundrySlot.date.asc(), order, LaundrySlot.machine_number.asc()).all()

def get_slot(*, user, slot_id: int) -> LaundrySlot:
    st = _membership(user)
    return _find_in_hostel(st, slot_id)

def has_booking_on(*, user, on_date: dt_date) -> bool:
    _require_user(user)
    q = LaundrySlot.query.filter_by(student_id=user.id, date=on_date, status=BOOKED)
    return bool(db.session.query(q.exists()).scalar())

def slot_board(*, user, on_date: dt_date) -> dict:
    """Страница прачечной за день: группы по окнам + есть ли у пользователя бронь."""
    slots = list_slots(user=user, on_date=on_date)
    groups: List[SlotGroup] = group_by_time_slot(slots)
    return {
        "date": on_date,
        "has_booking": has_booking_on(user=user, on_date=on_date),
        "groups": groups,
    }

# ---------- workflow ----------
def book_slot(*, user, machine_number: int, on_date: dt_date, time_slot: str) -> LaundrySlot:
    """Забронировать слот (machine, date, time_slot) в своём общежитии.

    Одна бронь на человека в день. Переход available -> booked делается одним
    условным UPDATE, поэтому два одновременных запроса не займут слот дважды.
    """
    st = _membership(user)

    # 1) одна бронь в день (по всему каталогу)
    if has_booking_on(user=user, on_date=on_date):
        raise DuplicateBookingError()

    # 2) ищем слот
    slot: LaundrySlot | None = LaundrySlot.query.filter_by(
        hostel_id=st.hostel_id, machine_number=machine_number, date=on_date, time_slot=time_slot,
    ).first()
    if not slot:
        raise SlotNotFoundError()

    # 3) слот должен быть свободен
    if slot.status != AVAILABLE:
        raise SlotUnavailableError()

    # 4) compare-and-swap по статусу
    try:
        rows = (db.session.query(LaundrySlot)
                .filter(LaundrySlot.id == slot.id, LaundrySlot.status == AVAILABLE)
                .update({
                    LaundrySlot.status: BOOKED,
                    LaundrySlot.student_id: user.id,
                    LaundrySlot.updated_at: utcnow(),
                }, synchronize_session=False))
        if rows == 0:
            db.session.rollback()
            raise SlotUnavailableError()
        _audit(user, "laundry.book", slot.id, {
            "machine_number": machine_number, "date": on_date.isoformat(), "time_slot": time_slot,
        })
        db.session.commit()
    except IntegrityError:
        # параллельная бронь того же пользователя на тот же день
        db.session.rollback()
        raise DuplicateBookingError()
    except SQLAlchemyError as ex:
        db.session.rollback()
        log.exception("laundry booking failed", extra={"event": "laundry_book_failed", "user_id": user.id})
        raise InternalError() from ex

    log.info("laundry slot booked", extra={
        "event": "laundry_book", "user_id": user.id, "slot_id": slot.id, "hostel_id": st.hostel_id,
    })
    db.session.expire(slot)
    return _find_in_hostel(st, slot.id)

def cancel_booking(*, user, slot_id: int) -> LaundrySlot:
    """Отменить свою бронь: booked -> available, жилец очищается."""
    st = _membership(user)
    slot = _find_in_hostel(st, slot_id)

    if slot.student_id is not None and slot.student_id != user.id:
        raise NotAuthorizedError()
    if slot.status != BOOKED:
        raise SlotUnavailableError("Slot is not booked")

    try:
        rows = (db.session.query(LaundrySlot)
                .filter(LaundrySlot.id == slot.id,
                        LaundrySlot.status == BOOKED,
                        LaundrySlot.student_id == user.id)
                .update({
                    LaundrySlot.status: AVAILABLE,
                    LaundrySlot.student_id: None,
                    LaundrySlot.updated_at: utcnow(),
                }, synchronize_session=False))
        if rows == 0:
            db.session.rollback()
            raise SlotUnavailableError("Slot is not booked")
        _audit(user, "laundry.cancel", slot.id, {
            "machine_number": slot.machine_number, "date": slot.date.isoformat(), "time_slot": slot.time_slot,
        })
        db.session.commit()
    except SQLAlchemyError as ex:
        db.session.rollback()
        log.exception("laundry cancel failed", extra={"event": "laundry_cancel_failed", "user_id": user.id})
        raise InternalError() from ex

    log.info("laundry booking cancelled", extra={
        "event": "laundry_cancel", "user_id": user.id, "slot_id": slot_id, "hostel_id": st.hostel_id,
    })
    db.session.expire(slot)
    return _find_in_hostel(st, slot_id)
