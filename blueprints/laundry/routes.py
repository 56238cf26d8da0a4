# blueprints/laundry/routes.py
from __future__ import annotations
import logging
from datetime import date

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from . import services as svc
from .catalog import group_to_json, slot_to_json
from .errors import InternalError, LaundryError
from .schemas import BookingIn, SlotQuery

api_bp = Blueprint("laundry_api", __name__)
log = logging.getLogger(__name__)

def _json_err(code: str, http: int = 400, message: str | None = None, detail=None):
    body = {"error": message or code, "code": code}
    if detail is not None:
        body["detail"] = detail
    return jsonify(body), http

def _pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors()
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        e.pop("url", None)
    return errs

@api_bp.errorhandler(LaundryError)
def _laundry_error(ex: LaundryError):
    return _json_err(ex.code, ex.http_status, ex.detail)

@api_bp.errorhandler(SQLAlchemyError)
def _store_error(ex: SQLAlchemyError):
    # хранилище недоступно / неожиданный сбой — без ретраев
    db.session.rollback()
    log.exception("laundry store failure", extra={"event": "laundry_store_error", "path": request.path})
    err = InternalError()
    return _json_err(err.code, err.http_status, err.detail)

def _date_arg():
    try:
        return SlotQuery.model_validate({"date": request.args.get("date") or None}).date, None
    except ValidationError as ve:
        return None, _json_err("validation_error", 422, "Bad date", _pydantic_errors_safe(ve))

# ---------- API ----------
@api_bp.get("/laundry")
@login_required
def api_laundry_list():
    on_date, err = _date_arg()
    if err:
        return err
    slots = svc.list_slots(user=current_user, on_date=on_date)
    return jsonify([slot_to_json(s) for s in slots])

@api_bp.get("/laundry/board")
@login_required
def api_laundry_board():
    on_date, err = _date_arg()
    if err:
        return err
    board = svc.slot_board(user=current_user, on_date=on_date or date.today())
    return jsonify({
        "date": board["date"].isoformat(),
        "has_booking": board["has_booking"],
        "groups": [group_to_json(g) for g in board["groups"]],
    })

@api_bp.get("/laundry/<int:slot_id>")
@login_required
def api_laundry_detail(slot_id: int):
    slot = svc.get_slot(user=current_user, slot_id=slot_id)
    return jsonify(slot_to_json(slot, with_hostel=True))

@api_bp.post("/laundry")
@login_required
def api_laundry_book():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _json_err("missing_fields", 400, "Missing required fields")
    try:
        data = BookingIn.model_validate(payload)
    except ValidationError as ve:
        return _json_err("validation_error", 422, "Invalid booking request", _pydantic_errors_safe(ve))

    slot = svc.book_slot(
        user=current_user,
        machine_number=data.machine_number,
        on_date=data.date,
        time_slot=data.time_slot,
    )
    return jsonify(slot_to_json(slot))

@api_bp.patch("/laundry/<int:slot_id>")
@login_required
def api_laundry_cancel(slot_id: int):
    slot = svc.cancel_booking(user=current_user, slot_id=slot_id)
    return jsonify(slot_to_json(slot))
