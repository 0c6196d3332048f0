# podcast_studio/repositories/base_repository.py
"""
Generic repository for ULID-keyed scheduling models.

Repositories only flush. Commit and rollback belong to the service that owns
the unit of work (see ``BaseService.transaction``). Every ``SQLAlchemyError``
leaves this layer as ``RepositoryException`` with the cause chained.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..database import get_dialect_name

ModelT = TypeVar("ModelT")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[ModelT]):
    """Minimal data-access contract shared by the scheduling repositories."""

    @abstractmethod
    def get_by_id(self, id: str, for_update: bool = False) -> Optional[ModelT]:
        """
        Load one row by primary key.

        Args:
            id: ULID primary key
            for_update: Hold a row lock until the transaction ends (PostgreSQL)

        Returns:
            The row, or None when the id is unknown
        """

    @abstractmethod
    def create(self, **kwargs: Any) -> ModelT:
        """Insert and flush a new row; raises RepositoryException on failure."""

    @abstractmethod
    def update(self, id: str, **kwargs: Any) -> Optional[ModelT]:
        """Set the given attributes on an existing row; None when the id is unknown."""


class BaseRepository(IRepository[ModelT]):
    """
    SQLAlchemy implementation of ``IRepository`` for one model class.

    Attributes:
        db: Session shared with the owning service
        model: Mapped class this repository reads and writes
    """

    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    def _fail(self, action: str, exc: SQLAlchemyError) -> RepositoryException:
        self.logger.error(f"{self.model.__name__}: {action} failed: {exc}")
        return RepositoryException(f"Failed to {action} {self.model.__name__}: {exc}")

    def get_by_id(self, id: str, for_update: bool = False) -> Optional[ModelT]:
        """
        Load one row by primary key.

        With ``for_update`` on PostgreSQL the row is selected ``FOR UPDATE`` and
        refreshed from the database even if the session already holds it.
        """
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if for_update and self.dialect_name == "postgresql":
                query = query.with_for_update().populate_existing()
            else:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            raise self._fail(f"load {id}", e) from e

    def create(self, **kwargs: Any) -> ModelT:
        """Add a row and flush so its defaults (id, timestamps) are populated."""
        try:
            instance = self.model(**kwargs)
            self.db.add(instance)
            self.db.flush()
            return instance
        except IntegrityError as exc:
            self.logger.error(
                "Constraint violated inserting %s: %s", self.model.__name__, exc, exc_info=True
            )
            raise RepositoryException(
                f"Constraint violated inserting {self.model.__name__}: {exc}"
            ) from exc
        except SQLAlchemyError as e:
            raise self._fail("create", e) from e

    def update(self, id: str, **kwargs: Any) -> Optional[ModelT]:
        """Apply ``kwargs`` to the row's mapped attributes; unknown names are ignored."""
        try:
            instance = self.get_by_id(id)
            if instance is None:
                return None
            for attribute, value in kwargs.items():
                if hasattr(instance, attribute):
                    setattr(instance, attribute, value)
            self.db.flush()
            return instance
        except SQLAlchemyError as e:
            raise self._fail(f"update {id}", e) from e

    def count(self, **criteria: Any) -> int:
        """Number of rows whose columns equal ``criteria``."""
        try:
            return self.db.query(self.model).filter_by(**criteria).count()
        except SQLAlchemyError as e:
            raise self._fail("count", e) from e

    def _apply_eager_loading(self, query: Query) -> Query:
        """Hook for subclasses that want relationships loaded with the row."""
        return query
