# biblioteca/security/permissions.py
from __future__ import annotations
from typing import Optional

# Permisos (strings)
P_BOOKS_READ = "books:read"
P_BOOKS_WRITE = "books:write"
P_BOOKS_DELETE = "books:delete"

P_LOANS_READ = "loans:read"
P_LOANS_CREATE = "loans:create"
P_LOANS_RETURN = "loans:return"

P_DASHBOARD_READ = "dashboard:read"

P_SECURITY_EVENTS_READ = "security_events:read"

ENDPOINT_PERMISSIONS: dict[str, str] = {
    # catálogo
    "books.search_books": P_BOOKS_READ,
    "books.get_book": P_BOOKS_READ,
    "books.create_book": P_BOOKS_WRITE,
    "books.update_book": P_BOOKS_WRITE,
    "books.delete_book": P_BOOKS_DELETE,

    # préstamos
    "loans.loan_history": P_LOANS_READ,
    "loans.active_loans": P_LOANS_READ,
    "loans.get_loan": P_LOANS_READ,
    "loans.create_loan": P_LOANS_CREATE,
    "loans.return_book": P_LOANS_RETURN,

    "dashboard.stats": P_DASHBOARD_READ,

    "admin.admin_list_security_events": P_SECURITY_EVENTS_READ,
}

_READ = {P_BOOKS_READ, P_LOANS_READ, P_DASHBOARD_READ}

ROLE_PERMISSIONS: dict[str, set[str]] = {
    "user": set(_READ),
    "bibliotecario": _READ | {
        P_BOOKS_WRITE,
        P_BOOKS_DELETE,
        P_LOANS_CREATE,
        P_LOANS_RETURN,
    },
    "admin": {"*"},
}

def get_required_permission(endpoint: str | None) -> Optional[str]:
    if not endpoint:
        return None
    return ENDPOINT_PERMISSIONS.get(endpoint)

def role_has_permission(role: str | None, permission: str) -> bool:
    if not role:
        return False
    perms = ROLE_PERMISSIONS.get(role, set())
    return ("*" in perms) or (permission in perms)
