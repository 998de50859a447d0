from __future__ import annotations

from flask import Request, session, current_app
from sqlalchemy.exc import SQLAlchemyError

from biblioteca.extensions import db
from biblioteca.models.security_event import SecurityEvent


def client_ip(req: Request) -> str:
    """
    IP del cliente. X-Forwarded-For solo cuenta si la app corre detrás de un
    proxy de confianza (TRUSTED_PROXY_COUNT > 0): ProxyFix ya reescribió
    remote_addr con ese valor.
    """
    return req.remote_addr or "unknown"


def record_security_event(
    *,
    event_type: str,
    status_code: int,
    req: Request,
    user=None,
    details: str | None = None,
) -> None:
    """
    Best-effort: nunca debe romper la request.
    Con SECURITY_EVENTS_ENABLED=False no guarda nada.
    """
    if not current_app.config.get("SECURITY_EVENTS_ENABLED", True):
        return

    try:
        user_id = session.get("user_id") or getattr(user, "id", None)
        role = getattr(user, "role", None) if user else session.get("role")

        ev = SecurityEvent(
            event_type=event_type,
            status_code=status_code,
            endpoint=req.endpoint,
            blueprint=req.blueprint,
            method=req.method,
            path=req.path,
            user_id=user_id,
            role=role,
            ip=client_ip(req),
            details=details,
        )
        db.session.add(ev)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning("SECURITY EVENT NOT STORED: type=%s", event_type, exc_info=True)
