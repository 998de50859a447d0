from flask import Blueprint, jsonify, request
from ...services import ledger
from ..auth.decorators import current_user, login_required

bp = Blueprint("books", __name__, url_prefix="/books")


@bp.get("/")
@login_required
def search_books():
    q = request.args.get("q")
    availability = request.args.get("filter", "all")

    books = ledger.search_books(q, availability=availability)

    return jsonify(
        total=len(books),
        items=[b.to_dict() for b in books],
    ), 200


@bp.post("/")
@login_required
def create_book():
    data = request.get_json(silent=True) or {}

    book = ledger.create_book(current_user(), data)

    return jsonify(message="created", **book.to_dict()), 201


@bp.get("/<int:book_id>")
@login_required
def get_book(book_id: int):
    book = ledger.get_book(book_id)
    return jsonify(book.to_dict()), 200


@bp.patch("/<int:book_id>")
@login_required
def update_book(book_id: int):
    data = request.get_json(silent=True) or {}

    book = ledger.update_book(current_user(), book_id, data)

    return jsonify(message="updated", **book.to_dict()), 200


@bp.delete("/<int:book_id>")
@login_required
def delete_book(book_id: int):
    ledger.delete_book(current_user(), book_id)
    return jsonify(message="deleted", id=book_id), 200
