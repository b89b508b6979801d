"""
SQLAlchemy models for the credential datastore.

Only the ``users`` table is mapped; the rest of the dashboard schema
(invoices, customers) belongs to the dashboard itself.
"""

from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for auth models."""

    pass


class UserRow(Base):
    """
    Credential row.

    ``email`` is stored lowercased; ``password`` holds the bcrypt hash,
    never the plaintext.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<UserRow(id={self.id}, email={self.email})>"
