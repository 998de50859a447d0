from flask import Blueprint, current_app, jsonify, request
from ...services import ledger
from ..auth.decorators import current_user, login_required

bp = Blueprint("loans", __name__, url_prefix="/loans")


# ---------- CREATE LOAN ----------
@bp.post("/")
@login_required
def create_loan():
    data = request.get_json(silent=True) or {}

    loan_days = data.get("loan_days")
    if loan_days is None:
        loan_days = current_app.config.get("DEFAULT_LOAN_DAYS", 14)

    loan = ledger.create_loan(
        current_user(),
        data.get("book_id"),
        data.get("student_name"),
        data.get("student_class"),
        loan_days,
    )

    return jsonify(message="created", **loan.to_dict(ledger.derive_status(loan))), 201


# ---------- HISTORY ----------
@bp.get("/")
@login_required
def loan_history():
    rows = ledger.get_loan_history(
        request.args.get("q"),
        request.args.get("status", "all"),
    )

    return jsonify(
        total=len(rows),
        items=[loan.to_dict(status) for loan, status in rows],
    ), 200


# ---------- ACTIVE (pendientes de devolución) ----------
@bp.get("/active")
@login_required
def active_loans():
    loans = ledger.list_active_loans()
    today = ledger.current_date()

    return jsonify(
        total=len(loans),
        items=[loan.to_dict(ledger.derive_status(loan, today)) for loan in loans],
    ), 200


@bp.get("/<int:loan_id>")
@login_required
def get_loan(loan_id: int):
    loan = ledger.get_loan(loan_id)
    return jsonify(loan.to_dict(ledger.derive_status(loan))), 200


# ---------- RETURN ----------
@bp.post("/<int:loan_id>/return")
@login_required
def return_book(loan_id: int):
    loan = ledger.return_book(current_user(), loan_id)
    return jsonify(message="returned", **loan.to_dict(ledger.derive_status(loan))), 200
