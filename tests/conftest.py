import os
import sys

# Ensure project root is on PYTHONPATH
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
from sqlalchemy.pool import StaticPool

from biblioteca.extensions import db
from biblioteca.models import Book
from biblioteca.models.user import User
from biblioteca.security import rate_limit


TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "SQLALCHEMY_ENGINE_OPTIONS": {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    },
    "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    "SECRET_KEY": "test-secret",
    "SECURITY_EVENTS_ENABLED": False,
    "RATE_LIMIT_ENABLED": False,
}


@pytest.fixture()
def app():
    from biblioteca import create_app

    # ✅ IMPORTANT: pass overrides INTO create_app
    app = create_app(config_overrides=dict(TEST_CONFIG))

    with app.app_context():
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

    rate_limit.reset()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def librarian(app):
    return ensure_user(2, role="bibliotecario")


def ensure_user(user_id: int, role: str = "user", is_active: bool = True):
    user = db.session.get(User, user_id)
    if user is None:
        user = User(
            id=user_id,
            email=f"user{user_id}@test.local",
            name=f"User {user_id}",
            role=role,
            is_active=is_active,
        )
        user.set_password("test1234")
        db.session.add(user)
        db.session.commit()
    else:
        user.role = role
        user.is_active = is_active
        db.session.commit()
    return user


def make_book(total: int = 5, available: int | None = None, title: str = "Dom Casmurro",
              author: str = "Machado de Assis") -> int:
    book = Book(
        title=title,
        author=author,
        publisher="Companhia das Letras",
        total_quantity=total,
        available_quantity=total if available is None else available,
    )
    db.session.add(book)
    db.session.commit()
    return book.id


def fresh(model, obj_id):
    """Relee de la base (la request usa otra sesión)."""
    db.session.expire_all()
    return db.session.get(model, obj_id)


def login_inactive_session(client, user_id=99, role="bibliotecario"):
    ensure_user(user_id, role=role, is_active=False)
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role

def login_session(client, user_id=1, role="user"):
    ensure_user(user_id, role=role, is_active=True)
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
