"""
Common mixins for scoped documents
"""
from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import declared_attr


class ScopeMixin:
    """
    Ownership columns shared by Items and Sales.

    manager_id is the owning scope; user_id is the acting user; cashier_id is
    set when a cashier created the document; device_id records offline-sync
    provenance.
    """

    @declared_attr
    def user_id(cls):
        return Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    @declared_attr
    def manager_id(cls):
        return Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    @declared_attr
    def cashier_id(cls):
        return Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)

    device_id = Column(String(100), nullable=False)


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)
