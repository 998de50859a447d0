from datetime import date, datetime
from ..extensions import db


class Loan(db.Model):
    __tablename__ = "loans"

    id = db.Column(db.Integer, primary_key=True)

    # SET NULL: el historial sobrevive al borrado del libro
    book_id = db.Column(
        db.Integer,
        db.ForeignKey("books.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    student_name = db.Column(db.String(255), nullable=False, index=True)
    student_class = db.Column(db.String(50), nullable=False)

    loan_date = db.Column(db.Date, nullable=False, index=True)
    expected_return_date = db.Column(db.Date, nullable=False, index=True)
    actual_return_date = db.Column(db.Date, nullable=True)

    status = db.Column(
        db.String(20),
        nullable=False,
        default="emprestado"
    )
    # emprestado | devolvido  ("atrasado" solo se deriva al leer)

    created_by = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    book = db.relationship("Book", backref=db.backref("loans", passive_deletes=True))
    creator = db.relationship("User", backref="loans_created")

    class Status:
        ON_LOAN = "emprestado"
        RETURNED = "devolvido"
        OVERDUE = "atrasado"

        ALL = (ON_LOAN, RETURNED, OVERDUE)

    def to_dict(self, status: str, with_book: bool = True) -> dict:
        data = {
            "id": self.id,
            "book_id": self.book_id,
            "student_name": self.student_name,
            "student_class": self.student_class,
            "loan_date": _iso(self.loan_date),
            "expected_return_date": _iso(self.expected_return_date),
            "actual_return_date": _iso(self.actual_return_date),
            "status": status,
            "created_by": self.created_by,
        }
        if with_book:
            data["book"] = self.book.summary() if self.book else None
        return data


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None
