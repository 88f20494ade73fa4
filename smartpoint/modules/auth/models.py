from sqlalchemy import Column, String, Boolean, ForeignKey, Integer, Enum, Uuid
from uuid import uuid4
from smartpoint.database.database import Base
from smartpoint.common.mixins import TimestampMixin
import enum


class UserRole(enum.Enum):
    MANAGER = "manager"
    CASHIER = "cashier"


class User(Base, TimestampMixin):
    """
    Managers own a store's inventory and sales; cashiers are linked to one
    manager through manager_id and work inside that manager's scope.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(200), unique=True, nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    business_name = Column(String(200), nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.MANAGER, index=True)
    manager_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Reporting preference; None falls back to DEFAULT_FIRST_DAY_OF_WEEK
    first_day_of_week = Column(Integer, nullable=True)

    @property
    def full_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.username

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    @property
    def is_cashier(self) -> bool:
        return self.role == UserRole.CASHIER
