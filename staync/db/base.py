from advanced_alchemy.base import UUIDAuditBase


class Base(UUIDAuditBase):
    """Declarative base: UUID primary key plus ``created_at``/``updated_at``."""

    __abstract__ = True
