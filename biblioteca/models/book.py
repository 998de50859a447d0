from datetime import datetime
from ..extensions import db


class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(255), nullable=False, index=True)
    author = db.Column(db.String(255), nullable=False, index=True)
    publisher = db.Column(db.String(255))
    category = db.Column(db.String(100), index=True)

    # ejemplares: total comprados / no prestados ahora mismo
    total_quantity = db.Column(db.Integer, nullable=False, default=0)
    available_quantity = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    __table_args__ = (
        db.CheckConstraint("total_quantity >= 0", name="ck_books_total_non_negative"),
        db.CheckConstraint("available_quantity >= 0", name="ck_books_available_non_negative"),
        db.CheckConstraint(
            "available_quantity <= total_quantity",
            name="ck_books_available_le_total",
        ),
    )

    @property
    def borrowed_quantity(self) -> int:
        return self.total_quantity - self.available_quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "publisher": self.publisher,
            "category": self.category,
            "total_quantity": self.total_quantity,
            "available_quantity": self.available_quantity,
            "borrowed_quantity": self.borrowed_quantity,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def summary(self) -> dict:
        return {"id": self.id, "title": self.title, "author": self.author}
