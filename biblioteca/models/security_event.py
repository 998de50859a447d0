from __future__ import annotations

from datetime import datetime, timezone

from biblioteca.extensions import db


class SecurityEvent(db.Model):
    """Denegaciones de acceso y bloqueos de rate limit (auditoría)."""

    __tablename__ = "security_events"

    class Types:
        UNAUTHORIZED = "deny_unauthorized"
        INACTIVE = "deny_inactive"
        FORBIDDEN = "deny_forbidden"
        RATE_LIMITED = "rate_limited"
        ALL = (UNAUTHORIZED, INACTIVE, FORBIDDEN, RATE_LIMITED)

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    event_type = db.Column(db.String(32), nullable=False, index=True)
    status_code = db.Column(db.Integer, nullable=False, index=True)

    # request
    endpoint = db.Column(db.String(128), nullable=True, index=True)
    blueprint = db.Column(db.String(64), nullable=True, index=True)
    method = db.Column(db.String(10), nullable=True)
    path = db.Column(db.String(255), nullable=True)
    ip = db.Column(db.String(64), nullable=True, index=True)

    # sin FK: el evento sobrevive al usuario
    user_id = db.Column(db.Integer, nullable=True, index=True)
    role = db.Column(db.String(32), nullable=True, index=True)

    details = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "event_type": self.event_type,
            "status_code": self.status_code,
            "endpoint": self.endpoint,
            "blueprint": self.blueprint,
            "method": self.method,
            "path": self.path,
            "user_id": self.user_id,
            "role": self.role,
            "ip": self.ip,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"<SecurityEvent {self.event_type} {self.status_code} {self.endpoint}>"
