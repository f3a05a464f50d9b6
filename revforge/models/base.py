"""SQLAlchemy declarative Base and shared model configuration."""

from sqlalchemy.orm import DeclarativeBase

from revforge.core.security import generate_opaque_token


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def generate_id(prefix: str) -> str:
    """Opaque string primary key such as user_Vb3k...; never derived from user input."""
    return f"{prefix}_{generate_opaque_token(16)}"
