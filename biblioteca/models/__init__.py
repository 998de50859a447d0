from .user import User
from .book import Book
from .loan import Loan
from .security_event import SecurityEvent  # noqa: F401


__all__ = ["User", "Book", "Loan", "SecurityEvent"]
