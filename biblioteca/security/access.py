"""
Decisión de acceso por endpoint.

Un único mecanismo: cada endpoint privado declara su permiso en
`permissions.ENDPOINT_PERMISSIONS` y cada rol tiene su conjunto en
`ROLE_PERMISSIONS`. Un endpoint privado sin permiso declarado solo lo ve admin.
"""
from __future__ import annotations

from dataclasses import dataclass

from .permissions import get_required_permission, role_has_permission

PUBLIC_ENDPOINTS = frozenset({"health", "index", "routes", "static"})
PUBLIC_BLUEPRINTS = frozenset({"auth"})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    permission: str | None
    reason: str  # "granted" | "missing_permission" | "undeclared_endpoint"


def is_public_endpoint(endpoint: str | None) -> bool:
    if not endpoint:
        return False
    blueprint, dot, _ = endpoint.partition(".")
    if dot and blueprint in PUBLIC_BLUEPRINTS:
        return True
    return endpoint in PUBLIC_ENDPOINTS


def decide(user, endpoint: str | None) -> Decision:
    role = getattr(user, "role", None)
    required = get_required_permission(endpoint)

    if required is None:
        # fail-closed: ruta nueva sin permiso en la tabla
        if role == "admin":
            return Decision(True, None, "granted")
        return Decision(False, None, "undeclared_endpoint")

    if role_has_permission(role, required):
        return Decision(True, required, "granted")
    return Decision(False, required, "missing_permission")


def undeclared_endpoints(app) -> list[str]:
    """Endpoints privados registrados que no figuran en la tabla de permisos."""
    return sorted(
        {
            rule.endpoint
            for rule in app.url_map.iter_rules()
            if not is_public_endpoint(rule.endpoint)
            and get_required_permission(rule.endpoint) is None
        }
    )
