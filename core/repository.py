"""Repository helpers for database operations.

Provides a small owner-scoped repository for entry tables that carry a
soft-delete column, plus the `save` convenience function used by
the API and service layers.
"""

from sqlalchemy.orm import Session
from typing import TypeVar, Generic, Type, Optional, List, Any
from database.models import Base
from core.dates import utcnow

T = TypeVar('T', bound=Base)


class SoftDeleteRepository(Generic[T]):
    """Repository for models with `usuario_id` and `deletado_em` columns.

    Reads never return soft-deleted rows; `soft_delete` stamps the deletion
    time instead of removing the row.

    Attributes:
        model: SQLAlchemy model class to operate on.
        session: Database session for executing queries.
    """

    def __init__(self, model: Type[T], session: Session):
        """Initialize repository with model and session.

        Args:
            model: SQLAlchemy model class.
            session: Database session.
        """
        self.model = model
        self.session = session

    def _live(self):
        return self.session.query(self.model).filter(self.model.deletado_em.is_(None))

    def get_live(self, id: Any) -> Optional[T]:
        """Retrieve a row by primary key unless it was soft-deleted.

        Args:
            id: Primary key value.

        Returns:
            Model instance or None if missing or deleted.
        """
        return self._live().filter(self.model.id == id).first()

    def list_for_owner(self, usuario_id: int, limit: int = 100) -> List[T]:
        """Live rows owned by a user, newest first."""
        order_column = getattr(self.model, self.model.timestamp_field)
        return (
            self._live()
            .filter(self.model.usuario_id == usuario_id)
            .order_by(order_column.desc())
            .limit(limit)
            .all()
        )

    def soft_delete(self, obj: T) -> T:
        """Mark an object as deleted and commit.

        Args:
            obj: Model instance to hide from all read paths.
        """
        obj.deletado_em = utcnow()
        self.session.commit()
        self.session.refresh(obj)
        return obj


def save(session: Session, obj: Base) -> Base:
    """Convenience function to add, commit and refresh an object.

    Args:
        session: Database session.
        obj: Model instance to persist.

    Returns:
        The persisted object with refreshed attributes.
    """
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj

