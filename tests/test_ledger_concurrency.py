import threading

import pytest

from biblioteca import create_app
from biblioteca.extensions import db
from biblioteca.models import Book, User
from biblioteca.services import ledger
from biblioteca.services.errors import ConflictError


@pytest.fixture()
def file_app(tmp_path):
    # varias conexiones reales: el UPDATE condicional es el que arbitra
    app = create_app(config_overrides={
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///" + str(tmp_path / "concurrency.db"),
        "SQLALCHEMY_ENGINE_OPTIONS": {
            "connect_args": {"check_same_thread": False, "timeout": 30},
        },
        "SECRET_KEY": "test-secret",
        "SECURITY_EVENTS_ENABLED": False,
        "RATE_LIMIT_ENABLED": False,
    })
    with app.app_context():
        db.create_all()
        librarian = User(id=1, email="lib@test.local", role="bibliotecario")
        librarian.set_password("test1234")
        db.session.add(librarian)
        db.session.commit()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _book(app, total, available):
    with app.app_context():
        book = Book(title="Dom Casmurro", author="Machado de Assis",
                    total_quantity=total, available_quantity=available)
        db.session.add(book)
        db.session.commit()
        return book.id


def _lend_concurrently(app, book_id, n):
    barrier = threading.Barrier(n)
    outcomes = []

    def worker(i):
        with app.app_context():
            actor = db.session.get(User, 1)
            barrier.wait()
            try:
                ledger.create_loan(actor, book_id, f"Aluno {i}", "9A", 7)
                outcomes.append("ok")
            except ConflictError:
                outcomes.append("conflict")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


@pytest.mark.parametrize("n,k", [(8, 3), (4, 6), (5, 0)])
def test_concurrent_loans_never_oversell(file_app, n, k):
    book_id = _book(file_app, total=max(k, 1), available=k)

    outcomes = _lend_concurrently(file_app, book_id, n)

    assert len(outcomes) == n
    assert outcomes.count("ok") == min(n, k)
    assert outcomes.count("conflict") == n - min(n, k)

    with file_app.app_context():
        book = db.session.get(Book, book_id)
        assert book.available_quantity == max(0, k - n)
        assert len(book.loans) == min(n, k)
