from __future__ import annotations

import click
from flask import Flask

from .extensions import db
from .models import Book, User

# catálogo de ejemplo (mismos títulos que la demo original)
DEMO_BOOKS = [
    {"title": "Dom Casmurro", "author": "Machado de Assis",
     "publisher": "Companhia das Letras", "category": "Literatura Brasileira", "total_quantity": 5},
    {"title": "O Pequeno Príncipe", "author": "Antoine de Saint-Exupéry",
     "publisher": "Agir", "category": "Literatura Infantil", "total_quantity": 8},
    {"title": "Harry Potter e a Pedra Filosofal", "author": "J.K. Rowling",
     "publisher": "Rocco", "category": "Fantasia", "total_quantity": 6},
    {"title": "1984", "author": "George Orwell",
     "publisher": "Companhia das Letras", "category": "Ficção Científica", "total_quantity": 4},
]


def ensure_admin(email: str, password: str, name: str = "Administrador") -> tuple[User, bool]:
    """Crea el admin inicial o promueve al usuario existente. Devuelve (user, created)."""
    email = email.strip().lower()
    user = User.query.filter_by(email=email).first()
    created = user is None
    if created:
        user = User(email=email, name=name)
        user.set_password(password)
        db.session.add(user)
    user.role = "admin"
    user.is_active = True
    db.session.commit()
    return user, created


def seed_demo_books() -> int:
    added = 0
    for data in DEMO_BOOKS:
        if Book.query.filter_by(title=data["title"]).first():
            continue
        db.session.add(Book(available_quantity=data["total_quantity"], **data))
        added += 1
    db.session.commit()
    return added


def register_cli(app: Flask) -> None:
    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--password", required=True, prompt=True, hide_input=True)
    @click.option("--name", default="Administrador", show_default=True)
    def create_admin(email: str, password: str, name: str):
        """Crea (o promueve) el administrador inicial."""
        if len(password) < 8:
            raise click.BadParameter("min 8 characters", param_hint="--password")
        user, created = ensure_admin(email, password, name)
        app.logger.info("ADMIN %s: id=%s email=%s", "CREATED" if created else "PROMOTED", user.id, user.email)
        click.echo(f"{'created' if created else 'promoted'}: {user.email}")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Carga el catálogo de ejemplo."""
        added = seed_demo_books()
        click.echo(f"books added: {added}")
