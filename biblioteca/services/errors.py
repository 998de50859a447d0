from __future__ import annotations


class LedgerError(Exception):
    """
    Base de los errores del ledger. `code` viaja tal cual en el JSON
    de respuesta ({"error": code, ...}); `status` es el HTTP.
    """

    status = 400

    def __init__(self, code: str, **details):
        super().__init__(code)
        self.code = code
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.code, **self.details}


class ValidationError(LedgerError):
    status = 400


class NotFoundError(LedgerError):
    status = 404


class ConflictError(LedgerError):
    status = 409


class PermissionDeniedError(LedgerError):
    status = 403


class StoreError(LedgerError):
    status = 503
