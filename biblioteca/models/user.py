from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from biblioteca.extensions import db

ROLES = ("admin", "bibliotecario", "user")
PRIVILEGED_ROLES = frozenset({"admin", "bibliotecario"})


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=True)

    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(20), nullable=False, default="user")

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # 🔐 helpers de password
    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_privileged(self) -> bool:
        return self.is_active and self.role in PRIVILEGED_ROLES
