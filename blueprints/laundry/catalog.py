# blueprints/laundry/catalog.py
"""Представление каталога слотов: группировка по окнам и сериализация.

Здесь только чистые функции, без обращений к БД.
"""
from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from models.laundry_slot import SlotStatus, WINDOWS_BY_LABEL, TIME_WINDOWS
from .schemas import HostelOut, OccupantOut, SlotOut

# порядок окон: утро -> день -> вечер
WINDOW_ORDER: Dict[str, int] = {w.label: w.order_no for w in TIME_WINDOWS}

STATUS_PRESENTATION: Dict[str, Dict[str, str]] = {
    SlotStatus.AVAILABLE.value:   {"label": "Available",   "tone": "success"},
    SlotStatus.BOOKED.value:      {"label": "Booked",      "tone": "primary"},
    SlotStatus.IN_PROGRESS.value: {"label": "In progress", "tone": "warning"},
}

@dataclass
class SlotGroup:
    time_slot: str
    display: Optional[str]
    period: Optional[str]
    slots: List[Any] = field(default_factory=list)

def window_sort_key(label: str):
    # неизвестные метки уходят в конец, между собой по алфавиту
    return (WINDOW_ORDER.get(label, len(WINDOW_ORDER) + 1), label)

def group_by_time_slot(slots: Iterable[Any]) -> List[SlotGroup]:
    buckets: Dict[str, list] = defaultdict(list)
    for s in slots:
        buckets[s.time_slot].append(s)
    out: List[SlotGroup] = []
    for label in sorted(buckets, key=window_sort_key):
        w = WINDOWS_BY_LABEL.get(label)
        out.append(SlotGroup(
            time_slot=label,
            display=w.display if w else None,
            period=w.period if w else None,
            slots=sorted(buckets[label], key=lambda s: s.machine_number),
        ))
    return out

def status_presentation(status: str) -> Dict[str, str]:
    return STATUS_PRESENTATION.get(status, {"label": status, "tone": "muted"})

def _occupant(slot) -> Optional[OccupantOut]:
    user = slot.occupant
    if slot.student_id is None or user is None:
        return None
    st = user.student
    return OccupantOut(
        user_id=user.id,
        student_id=st.student_id if st else None,
        full_name=user.full_name,
        email=user.email,
    )

def slot_to_json(slot, *, with_hostel: bool = False) -> Dict[str, Any]:
    hostel = None
    if with_hostel and slot.hostel is not None:
        hostel = HostelOut(name=slot.hostel.name, code=slot.hostel.code)
    out = SlotOut(
        id=slot.id,
        hostel_id=slot.hostel_id,
        machine_number=slot.machine_number,
        date=slot.date,
        time_slot=slot.time_slot,
        status=slot.status,
        student_id=slot.student_id,
        student=_occupant(slot),
        hostel=hostel,
        created_at=slot.created_at.isoformat(),
        updated_at=slot.updated_at.isoformat(),
    )
    return out.model_dump(mode="json")

def group_to_json(group: SlotGroup) -> Dict[str, Any]:
    return {
        "time_slot": group.time_slot,
        "display": group.display,
        "period": group.period,
        "slots": [
            dict(slot_to_json(s), presentation=status_presentation(s.status))
            for s in group.slots
        ],
    }
