"""Base repository class providing generic CRUD operations with async support.

This module implements a generic repository pattern that provides common database
operations for all models. Repositories never commit or roll back: the caller
owns the transaction (DeckService wraps every operation in ``session.begin()``),
so a failed statement undoes the whole logical operation.
"""
import logging
from typing import Any
from typing import Generic
from typing import TypeVar

from sqlalchemy import delete
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockdeck.models.base import Base

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base exception for repository operations."""

    pass


class DuplicateError(RepositoryError):
    """Raised when attempting to create a duplicate entity."""

    pass


class DatabaseError(RepositoryError):
    """Raised when a database operation fails."""

    pass


class BaseRepository(Generic[ModelType]):
    """Generic base repository providing common CRUD operations.

    Example:
        ```python
        class DeckRepository(BaseRepository[Deck]):
            def __init__(self, session: AsyncSession):
                super().__init__(Deck, session)

        # Usage
        repo = DeckRepository(session)
        deck = await repo.create(user_id=1, name="Tech")
        ```
    """

    def __init__(self, model: type[ModelType], session: AsyncSession):
        """Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}Repository")

    async def create(self, **kwargs) -> ModelType:
        """Create a new entity.

        Args:
            **kwargs: Field values for the new entity

        Returns:
            Created model instance

        Raises:
            DuplicateError: If entity already exists (unique constraint violation)
            DatabaseError: If database operation fails
        """
        try:
            entity = self.model(**kwargs)
            self.session.add(entity)
            await self.session.flush()  # Get the ID without committing
            await self.session.refresh(entity)  # Refresh to get generated fields

            self.logger.info(f"Created {self.model.__name__} with id={entity.id}")
            return entity

        except IntegrityError as e:
            self.logger.warning(f"Integrity error creating {self.model.__name__}: {e}")
            raise DuplicateError(f"Entity already exists: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise DatabaseError(f"Database error creating {self.model.__name__}: {str(e)}")

    async def save(self, entity: ModelType) -> ModelType:
        """Flush pending changes on an already-loaded entity.

        Raises:
            DuplicateError: If the change violates unique constraints
            DatabaseError: If database operation fails
        """
        try:
            await self.session.flush()
            await self.session.refresh(entity)
            self.logger.debug(f"Saved {self.model.__name__} with id={entity.id}")
            return entity

        except IntegrityError as e:
            self.logger.warning(f"Integrity error saving {self.model.__name__}: {e}")
            raise DuplicateError(f"Update violates constraints: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to save {self.model.__name__}: {e}")
            raise DatabaseError(f"Database error saving {self.model.__name__}: {str(e)}")

    async def delete(self, entity: ModelType) -> None:
        """Hard-delete a loaded entity.

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            await self.session.delete(entity)
            await self.session.flush()
            self.logger.info(f"Deleted {self.model.__name__} with id={entity.id}")

        except SQLAlchemyError as e:
            self.logger.error(f"Failed to delete {self.model.__name__}: {e}")
            raise DatabaseError(f"Database error deleting {self.model.__name__}: {str(e)}")

    async def delete_where(self, **filters: Any) -> int:
        """Hard-delete every row matching equality filters in one statement.

        Returns:
            Number of deleted rows

        Raises:
            DatabaseError: If database operation fails
        """
        if not filters:
            raise ValueError("delete_where requires at least one filter")

        try:
            stmt = delete(self.model)
            for field, value in filters.items():
                stmt = stmt.where(getattr(self.model, field) == value)
            result = await self.session.execute(stmt)
            deleted_count = result.rowcount or 0

            self.logger.info(f"Deleted {deleted_count} {self.model.__name__} records")
            return deleted_count

        except SQLAlchemyError as e:
            self.logger.error(f"Failed batch delete for {self.model.__name__}: {e}")
            raise DatabaseError(
                f"Database error in batch delete for {self.model.__name__}: {str(e)}"
            )
