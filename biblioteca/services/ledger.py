"""
Ledger de préstamos: libros, préstamos y contadores de disponibilidad.

Todo cambio de `available_quantity` es un UPDATE condicional cuyo rowcount
se verifica (nunca leer-y-escribir en dos pasos), y el préstamo + el contador
se confirman en la misma transacción.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import date, timedelta

from flask import current_app
from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from biblioteca.extensions import db
from biblioteca.models import Book, Loan

from .errors import (
    ConflictError,
    LedgerError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    ValidationError,
)

MIN_LOAN_DAYS = 1
MAX_LOAN_DAYS = 30

BOOK_FILTERS = ("all", "available", "borrowed")
HISTORY_FILTERS = ("all",) + Loan.Status.ALL


def current_date() -> date:
    return date.today()


# -----------------------------
# Estado derivado (único sitio con la regla)
# -----------------------------
def derive_status(loan: Loan, today: date | None = None) -> str:
    if loan.actual_return_date is not None:
        return Loan.Status.RETURNED
    today = today or current_date()
    if today > loan.expected_return_date:
        return Loan.Status.OVERDUE
    return Loan.Status.ON_LOAN


def overdue_clause(today: date):
    """Misma regla que derive_status, en SQL (para contar en el dashboard)."""
    return (Loan.actual_return_date.is_(None)) & (Loan.expected_return_date < today)


# -----------------------------
# helpers
# -----------------------------
@contextmanager
def _atomic():
    try:
        yield
        db.session.commit()
    except LedgerError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("STORE ERROR: %s", exc.__class__.__name__)
        raise StoreError("store_unavailable") from exc


@contextmanager
def _reading():
    # lecturas: sin commit, mismo mapeo de fallos del store
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("STORE ERROR (read): %s", exc.__class__.__name__)
        raise StoreError("store_unavailable") from exc


def _require_writer(actor) -> None:
    if actor is None or not getattr(actor, "is_privileged", False):
        current_app.logger.info(
            "LEDGER DENY: user_id=%s role=%s",
            getattr(actor, "id", None), getattr(actor, "role", None),
        )
        raise PermissionDeniedError("forbidden")


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _required(fields: dict, *names: str) -> dict:
    cleaned = {name: _text(fields.get(name)) for name in names}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise ValidationError("missing_fields", required=missing)
    return cleaned


def _int(value, code: str, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(code, field=field)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(code, field=field)


def _quantity(value) -> int:
    n = _int(value, "invalid_quantity", "total_quantity")
    if n < 0:
        raise ValidationError("invalid_quantity", field="total_quantity", min=0)
    return n


def _loan_days(value) -> int:
    upper = min(MAX_LOAN_DAYS, int(current_app.config.get("MAX_LOAN_DAYS", MAX_LOAN_DAYS)))
    n = _int(value, "invalid_loan_days", "loan_days")
    if not MIN_LOAN_DAYS <= n <= upper:
        raise ValidationError("invalid_loan_days", min=MIN_LOAN_DAYS, max=upper)
    return n


def _id(value, field: str) -> int:
    return _int(value, "invalid_id", field)


# -----------------------------
# LIBROS
# -----------------------------
def create_book(actor, fields: dict) -> Book:
    _require_writer(actor)
    cleaned = _required(fields, "title", "author")
    total = _quantity(fields.get("total_quantity", 1))

    book = Book(
        title=cleaned["title"],
        author=cleaned["author"],
        publisher=_text(fields.get("publisher")) or None,
        category=_text(fields.get("category")) or None,
        total_quantity=total,
        available_quantity=total,
    )
    with _atomic():
        db.session.add(book)
        db.session.flush()
        book_id = book.id

    current_app.logger.info("BOOK CREATED: id=%s total=%s by=%s", book_id, total, actor.id)
    return get_book(book_id)


def get_book(book_id) -> Book:
    book_id = _id(book_id, "book_id")
    with _reading():
        book = db.session.get(Book, book_id)
    if book is None:
        raise NotFoundError("book_not_found", book_id=book_id)
    return book


def update_book(actor, book_id, fields: dict) -> Book:
    """
    Cambiar total_quantity ajusta available_quantity con el mismo delta
    (mínimo 0), en la misma sentencia, para conservar los ejemplares prestados.
    """
    _require_writer(actor)
    book_id = _id(book_id, "book_id")

    values = {}
    for name in ("title", "author"):
        if name in fields:
            values[name] = _required(fields, name)[name]
    for name in ("publisher", "category"):
        if name in fields:
            values[name] = _text(fields.get(name)) or None

    if "total_quantity" in fields:
        new_total = _quantity(fields["total_quantity"])
        # SET se evalúa contra los valores previos de la fila (SQLite, PostgreSQL).
        # MySQL evalúa de izquierda a derecha: ahí este UPDATE no sirve tal cual.
        adjusted = Book.available_quantity + (new_total - Book.total_quantity)
        values["total_quantity"] = new_total
        values["available_quantity"] = case((adjusted < 0, 0), else_=adjusted)

    with _atomic():
        if values:
            res = db.session.execute(
                update(Book)
                .where(Book.id == book_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            found = res.rowcount == 1
        else:
            found = db.session.get(Book, book_id) is not None
        if not found:
            raise NotFoundError("book_not_found", book_id=book_id)

    current_app.logger.info(
        "BOOK UPDATED: id=%s fields=%s by=%s", book_id, sorted(values), actor.id
    )
    return get_book(book_id)


def delete_book(actor, book_id) -> None:
    _require_writer(actor)
    book_id = _id(book_id, "book_id")

    outstanding = (
        select(Loan.id)
        .where(Loan.book_id == book_id, Loan.actual_return_date.is_(None))
        .exists()
    )

    with _atomic():
        res = db.session.execute(
            delete(Book)
            .where(
                Book.id == book_id,
                Book.available_quantity == Book.total_quantity,
                ~outstanding,
            )
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            if db.session.execute(select(Book.id).where(Book.id == book_id)).first() is None:
                raise NotFoundError("book_not_found", book_id=book_id)
            raise ConflictError("has_outstanding_loans", book_id=book_id)

        # el historial (devueltos) se queda sin libro
        db.session.execute(
            update(Loan)
            .where(Loan.book_id == book_id)
            .values(book_id=None)
            .execution_options(synchronize_session=False)
        )

    current_app.logger.info("BOOK DELETED: id=%s by=%s", book_id, actor.id)


def search_books(query: str | None = None, availability: str = "all") -> list[Book]:
    availability = (availability or "all").strip().lower()
    if availability not in BOOK_FILTERS:
        raise ValidationError("invalid_filter", allowed=list(BOOK_FILTERS))

    stmt = select(Book)
    q = _text(query)
    if q:
        stmt = stmt.where(
            or_(
                Book.title.icontains(q, autoescape=True),
                Book.author.icontains(q, autoescape=True),
            )
        )

    if availability == "available":
        stmt = stmt.where(Book.available_quantity > 0)
    elif availability == "borrowed":
        stmt = stmt.where(Book.available_quantity < Book.total_quantity)

    stmt = stmt.order_by(Book.created_at.desc(), Book.id.desc())
    with _reading():
        return list(db.session.scalars(stmt))


# -----------------------------
# PRÉSTAMOS
# -----------------------------
def create_loan(
    actor,
    book_id,
    student_name: str,
    student_class: str,
    loan_days,
    *,
    today: date | None = None,
) -> Loan:
    _require_writer(actor)
    cleaned = _required(
        {"student_name": student_name, "student_class": student_class},
        "student_name",
        "student_class",
    )
    if book_id in (None, ""):
        raise ValidationError("missing_fields", required=["book_id"])
    book_id = _id(book_id, "book_id")
    days = _loan_days(loan_days)
    today = today or current_date()

    with _atomic():
        # chequeo + decremento en un solo UPDATE condicional
        res = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_quantity > 0)
            .values(available_quantity=Book.available_quantity - 1)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            if db.session.execute(select(Book.id).where(Book.id == book_id)).first() is None:
                raise NotFoundError("book_not_found", book_id=book_id)
            raise ConflictError("not_available", book_id=book_id)

        loan = Loan(
            book_id=book_id,
            student_name=cleaned["student_name"],
            student_class=cleaned["student_class"],
            loan_date=today,
            expected_return_date=today + timedelta(days=days),
            actual_return_date=None,
            status=Loan.Status.ON_LOAN,
            created_by=getattr(actor, "id", None),
        )
        db.session.add(loan)
        db.session.flush()
        loan_id = loan.id

    current_app.logger.info(
        "LOAN CREATED: id=%s book_id=%s days=%s due=%s by=%s",
        loan_id, book_id, days, today + timedelta(days=days), actor.id,
    )
    return get_loan(loan_id)


def return_book(actor, loan_id, *, today: date | None = None) -> Loan:
    _require_writer(actor)
    loan_id = _id(loan_id, "loan_id")
    today = today or current_date()

    with _atomic():
        # null -> fecha, una sola vez; nunca antes de loan_date
        res = db.session.execute(
            update(Loan)
            .where(Loan.id == loan_id, Loan.actual_return_date.is_(None))
            .values(
                actual_return_date=case(
                    (Loan.loan_date > today, Loan.loan_date), else_=today
                ),
                status=Loan.Status.RETURNED,
            )
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            if db.session.execute(select(Loan.id).where(Loan.id == loan_id)).first() is None:
                raise NotFoundError("loan_not_found", loan_id=loan_id)
            raise ConflictError("already_returned", loan_id=loan_id)

        book_id = db.session.execute(
            select(Loan.book_id).where(Loan.id == loan_id)
        ).scalar_one()

        if book_id is not None:
            # +1 sin pasar de total_quantity
            db.session.execute(
                update(Book)
                .where(Book.id == book_id, Book.available_quantity < Book.total_quantity)
                .values(available_quantity=Book.available_quantity + 1)
                .execution_options(synchronize_session=False)
            )

    current_app.logger.info(
        "LOAN RETURNED: id=%s book_id=%s by=%s", loan_id, book_id, actor.id
    )
    return get_loan(loan_id)


def get_loan(loan_id) -> Loan:
    loan_id = _id(loan_id, "loan_id")
    with _reading():
        loan = db.session.get(Loan, loan_id, options=[joinedload(Loan.book)])
    if loan is None:
        raise NotFoundError("loan_not_found", loan_id=loan_id)
    return loan


def list_active_loans() -> list[Loan]:
    stmt = (
        select(Loan)
        .options(joinedload(Loan.book))
        .where(Loan.actual_return_date.is_(None))
        .order_by(Loan.expected_return_date.asc(), Loan.id.asc())
    )
    with _reading():
        return list(db.session.scalars(stmt))


def get_loan_history(
    query: str | None = None,
    status: str = "all",
    *,
    today: date | None = None,
) -> list[tuple[Loan, str]]:
    """
    Todos los préstamos con su estado derivado, loan_date desc.
    `status` filtra sobre el estado derivado, no sobre la columna.
    """
    status = (status or "all").strip().lower()
    if status not in HISTORY_FILTERS:
        raise ValidationError("invalid_status", allowed=list(HISTORY_FILTERS))
    today = today or current_date()

    stmt = select(Loan).outerjoin(Book, Loan.book_id == Book.id).options(joinedload(Loan.book))
    q = _text(query)
    if q:
        stmt = stmt.where(
            or_(
                Loan.student_name.icontains(q, autoescape=True),
                Book.title.icontains(q, autoescape=True),
            )
        )
    stmt = stmt.order_by(Loan.loan_date.desc(), Loan.id.desc())

    with _reading():
        rows = [(loan, derive_status(loan, today)) for loan in db.session.scalars(stmt)]
    if status != "all":
        rows = [(loan, s) for loan, s in rows if s == status]
    return rows


# -----------------------------
# DASHBOARD
# -----------------------------
def get_dashboard_stats(*, today: date | None = None) -> dict:
    today = today or current_date()

    with _reading():
        total, available, titles = db.session.execute(
            select(
                func.coalesce(func.sum(Book.total_quantity), 0),
                func.coalesce(func.sum(Book.available_quantity), 0),
                func.count(Book.id),
            )
        ).one()

        active = db.session.scalar(
            select(func.count(Loan.id)).where(Loan.actual_return_date.is_(None))
        )
        overdue = db.session.scalar(select(func.count(Loan.id)).where(overdue_clause(today)))

    return {
        "total_titles": int(titles),
        "total_copies": int(total),
        "available_copies": int(available),
        "borrowed_copies": int(total) - int(available),
        "active_loans": int(active or 0),
        "overdue_loans": int(overdue or 0),
    }
