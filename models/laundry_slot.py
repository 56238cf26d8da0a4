from __future__ import annotations
from dataclasses import dataclass
from datetime import date as dt_date, datetime, time
from enum import Enum

from sqlalchemy import (
    CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db
from .user import utcnow


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    IN_PROGRESS = "in_progress"


@dataclass(frozen=True)
class TimeWindow:
    label: str
    order_no: int
    start_time: time
    end_time: time

    @property
    def period(self) -> str:
        # morning-2 -> morning
        return self.label.split("-", 1)[0]

    @property
    def display(self) -> str:
        return f"{self.start_time.strftime('%I:%M %p').lstrip('0')} - {self.end_time.strftime('%I:%M %p').lstrip('0')}"


# Фиксированный набор окон: утро -> день -> вечер
TIME_WINDOWS: tuple[TimeWindow, ...] = (
    TimeWindow("morning-1", 1, time(6, 0), time(7, 0)),
    TimeWindow("morning-2", 2, time(7, 0), time(8, 0)),
    TimeWindow("morning-3", 3, time(8, 0), time(9, 0)),
    TimeWindow("afternoon-1", 4, time(14, 0), time(15, 0)),
    TimeWindow("afternoon-2", 5, time(15, 0), time(16, 0)),
    TimeWindow("evening-1", 6, time(18, 0), time(19, 0)),
    TimeWindow("evening-2", 7, time(19, 0), time(20, 0)),
)
WINDOWS_BY_LABEL = {w.label: w for w in TIME_WINDOWS}

_STATUS_SQL = ", ".join(f"'{s.value}'" for s in SlotStatus)
_LABELS_SQL = ", ".join(f"'{w.label}'" for w in TIME_WINDOWS)
_BOOKED_ONLY = text("status = 'booked'")


class LaundrySlot(db.Model):
    __tablename__ = "laundry_slots"

    id: Mapped[int] = mapped_column(primary_key=True)
    hostel_id: Mapped[int] = mapped_column(ForeignKey("hostels.id", ondelete="CASCADE"), nullable=False)
    machine_number: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt_date] = mapped_column(Date, nullable=False, index=True)
    time_slot: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=SlotStatus.AVAILABLE.value)
    student_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    hostel = relationship("Hostel")
    occupant = relationship("User")

    __table_args__ = (
        UniqueConstraint("hostel_id", "machine_number", "date", "time_slot", name="uq_laundry_slot_tuple"),
        CheckConstraint("machine_number > 0", name="ck_laundry_machine_positive"),
        CheckConstraint(f"status IN ({_STATUS_SQL})", name="ck_laundry_status"),
        CheckConstraint(f"time_slot IN ({_LABELS_SQL})", name="ck_laundry_time_slot"),
        # занят <=> есть жилец
        CheckConstraint(
            "(status = 'booked' AND student_id IS NOT NULL) OR (status <> 'booked' AND student_id IS NULL)",
            name="ck_laundry_occupant_iff_booked",
        ),
        # одна бронь на человека в день
        Index("uq_laundry_student_day_booked", "student_id", "date", unique=True,
              sqlite_where=_BOOKED_ONLY, postgresql_where=_BOOKED_ONLY),
        Index("ix_laundry_hostel_date", "hostel_id", "date"),
    )

    def __repr__(self):
        return f"<LaundrySlot #{self.id} m{self.machine_number} {self.date} {self.time_slot} {self.status}>"
