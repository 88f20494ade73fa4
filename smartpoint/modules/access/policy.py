"""
Access Scoping Policy

Turns an authenticated actor into the scope every Item/Sale query runs in.

- Manager: everything whose manager_id equals the manager's id, including
  documents rung or created by the manager's cashiers.
- Cashier: the linked manager's pool (same manager_id filter). A cashier
  without a manager reference cannot resolve a scope at all.

Resolution is a pure function; the FastAPI dependency that loads the actor's
manager lives in ``smartpoint.dependencies.scopeDependencies``.
"""

from dataclasses import dataclass
from typing import Optional, Type
from uuid import UUID

from smartpoint.common.exceptions import Forbidden, NotFound, NotLinked
from smartpoint.core.config import settings
from smartpoint.modules.auth.models import User, UserRole


@dataclass(frozen=True)
class Scope:
    actor_id: UUID
    role: UserRole
    manager_id: UUID
    first_day_of_week: int

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    @property
    def is_cashier(self) -> bool:
        return self.role == UserRole.CASHIER

    @property
    def cashier_id(self) -> Optional[UUID]:
        """Cashier attribution for documents this actor creates."""
        return self.actor_id if self.is_cashier else None

    def filter(self, model):
        """WHERE clause selecting the model's documents in this scope."""
        return model.manager_id == self.manager_id

    def owns(self, document) -> bool:
        return document is not None and document.manager_id == self.manager_id

    def ensure_owns(self, document, not_found: Type[NotFound] = NotFound):
        """
        Return the document if it belongs to this scope.

        Used after every fetch by id so guessed ids from another store read
        as missing.
        """
        if not self.owns(document):
            raise not_found()
        return document

    def require_manager(self, message: str = "Access denied. Manager role required.") -> None:
        if not self.is_manager:
            raise Forbidden(message)

    def can_reassign_cashier(self, sale) -> bool:
        """Managers may re-attribute any sale in scope; cashiers only sales they rang."""
        if not self.owns(sale):
            return False
        if self.is_manager:
            return True
        return sale.user_id == self.actor_id


def resolve_scope(user: User, manager: Optional[User] = None) -> Scope:
    """
    Resolve the scope for an actor.

    ``manager`` is the cashier's linked manager row when available; it only
    supplies the week-start preference, so a missing row is tolerated.
    """
    if user.role == UserRole.MANAGER:
        return Scope(
            actor_id=user.id,
            role=UserRole.MANAGER,
            manager_id=user.id,
            first_day_of_week=_first_day_of_week(user)
        )

    if user.manager_id is None:
        raise NotLinked()

    return Scope(
        actor_id=user.id,
        role=UserRole.CASHIER,
        manager_id=user.manager_id,
        first_day_of_week=_first_day_of_week(manager)
    )


def _first_day_of_week(user: Optional[User]) -> int:
    if user is not None and user.first_day_of_week is not None:
        return user.first_day_of_week
    return settings.DEFAULT_FIRST_DAY_OF_WEEK
