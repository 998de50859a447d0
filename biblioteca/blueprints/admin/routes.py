from __future__ import annotations

from datetime import datetime

from flask import Blueprint, request, jsonify, abort

from ...models import SecurityEvent
from ..auth.decorators import login_required, role_required

bp = Blueprint("admin", __name__, url_prefix="/admin")


def _parse_iso_dt(value: str) -> datetime:
    """
    Acepta ISO 8601 con o sin Z.
    Ej: 2026-01-12T14:00:00Z / 2026-01-12T14:00:00
    """
    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1]
    try:
        return datetime.fromisoformat(v)
    except ValueError:
        abort(
            400,
            description="Invalid datetime format. Use ISO 8601, e.g. 2026-01-12T14:00:00Z",
        )


# -------------------
# SECURITY EVENTS
# -------------------

@bp.route("/security-events", methods=["GET"])
@login_required
@role_required("admin")
def admin_list_security_events():
    """
    Lista últimos eventos de seguridad (máx 200), con filtros básicos.
    """
    limit = (request.args.get("limit") or "100").strip()
    event_type = (request.args.get("event_type") or "").strip()
    status_code = (request.args.get("status_code") or "").strip()
    user_id = (request.args.get("user_id") or "").strip()
    blueprint = (request.args.get("blueprint") or "").strip()

    dt_from = (request.args.get("from") or "").strip()
    dt_to = (request.args.get("to") or "").strip()

    try:
        limit_n = max(1, min(int(limit), 200))
    except ValueError:
        abort(400, description="limit must be int")

    q = SecurityEvent.query

    if event_type:
        if event_type not in SecurityEvent.Types.ALL:
            abort(400, description="unknown event_type")
        q = q.filter(SecurityEvent.event_type == event_type)

    if status_code:
        try:
            q = q.filter(SecurityEvent.status_code == int(status_code))
        except ValueError:
            abort(400, description="status_code must be int")

    if user_id:
        try:
            q = q.filter(SecurityEvent.user_id == int(user_id))
        except ValueError:
            abort(400, description="user_id must be int")

    if blueprint:
        q = q.filter(SecurityEvent.blueprint == blueprint)

    if dt_from:
        q = q.filter(SecurityEvent.created_at >= _parse_iso_dt(dt_from))

    if dt_to:
        q = q.filter(SecurityEvent.created_at <= _parse_iso_dt(dt_to))

    items = q.order_by(SecurityEvent.id.desc()).limit(limit_n).all()

    return jsonify(
        total=len(items),
        items=[e.to_dict() for e in items],
    ), 200
