"""
Base CRUD operations for SQLAlchemy models.

Provides generic create, lookup, filtered listing, paging and update
operations shared by the job, job log, dataset and workspace CRUD classes.

Dependencies: sqlalchemy, uuid
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Provides standard database operations that work with any SQLAlchemy model.
    Subclasses should specify the model class and can override or extend
    these methods for model-specific behavior.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        """
        Initialize CRUD with target model.

        Args:
            model: SQLAlchemy model class for database operations
        """
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Create a new record in the database.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance with generated ID and timestamps
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        """
        Retrieve a single record by primary key.

        Args:
            session: Async database session
            id: UUID primary key

        Returns:
            Model instance if found, None otherwise
        """
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_where(
        self,
        session: AsyncSession,
        *criteria: Any,
        order_by: Any = None,
        limit: int | None = None,
        offset: int = 0,
        options: Sequence[Any] = (),
    ) -> Sequence[ModelT]:
        """
        Retrieve records matching criteria with optional ordering and paging.

        Args:
            session: Async database session
            *criteria: SQLAlchemy boolean expressions, AND-ed together
            order_by: Ordering clause, tuple of clauses, or None for storage order
            limit: Maximum number of records to return (None for all)
            offset: Number of records to skip
            options: Loader options (e.g. selectinload) applied to the query

        Returns:
            Sequence of model instances
        """
        stmt = select(self.model).where(*criteria).offset(offset)
        if options:
            stmt = stmt.options(*options)
        if isinstance(order_by, tuple):
            stmt = stmt.order_by(*order_by)
        elif order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_where(self, session: AsyncSession, *criteria: Any) -> int:
        """
        Count records matching criteria.

        Args:
            session: Async database session
            *criteria: SQLAlchemy boolean expressions, AND-ed together

        Returns:
            Number of matching rows
        """
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def update_by_id(
        self,
        session: AsyncSession,
        id: UUID,
        **kwargs,
    ) -> ModelT | None:
        """
        Update a record by primary key.

        Args:
            session: Async database session
            id: UUID primary key
            **kwargs: Fields to update with new values

        Returns:
            Updated model instance if found, None otherwise
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**kwargs)
            .returning(self.model)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_page(
        self,
        session: AsyncSession,
        *criteria: Any,
        order_by: Any,
        limit: int,
        offset: int = 0,
        options: Sequence[Any] = (),
    ) -> tuple[Sequence[ModelT], int]:
        """
        Retrieve one page of matching records plus the total match count.

        Args:
            session: Async database session
            *criteria: SQLAlchemy boolean expressions, AND-ed together
            order_by: Ordering clause; pages are only stable with a total order
            limit: Page size
            offset: Records to skip
            options: Loader options applied to the page query

        Returns:
            tuple: (records on this page, total matching records)
        """
        records = await self.list_where(
            session,
            *criteria,
            order_by=order_by,
            limit=limit,
            offset=offset,
            options=options,
        )
        total = await self.count_where(session, *criteria)
        return records, total
