from __future__ import annotations
from flask import Blueprint, jsonify, request
from extensions import db
from models import AuditLog
from blueprints.auth.routes import admin_required

api_bp = Blueprint("admin_api", __name__)

# быстрый просмотр лога бронирований
@api_bp.get("/admin/audit-logs")
@admin_required
def audit_logs():
    limit = min(200, max(1, request.args.get("limit", 50, type=int)))
    q = db.session.query(AuditLog)
    entity = request.args.get("entity")
    if entity:
        q = q.filter(AuditLog.entity == entity)
    rows = q.order_by(AuditLog.id.desc()).limit(limit).all()
    return jsonify({"ok": True, "items": [
        {"id": a.id, "user_id": a.user_id, "action": a.action, "entity": a.entity,
         "entity_id": a.entity_id, "payload": a.payload, "created_at": a.created_at.isoformat()}
        for a in rows
    ]})
