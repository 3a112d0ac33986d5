# seller_service/app/repositories/sellers.py
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from seller_service.app.core.logging import get_logger
from seller_service.app.models.seller import Seller, SellerStatus, VerificationStatus
from seller_service.app.schemas import SellerFilter

logger = get_logger(__name__)


class StaleSellerError(Exception):
    """The row changed (or vanished) since the caller read it."""

    def __init__(self, seller_id: int, expected_version: Optional[int]):
        self.seller_id = seller_id
        self.expected_version = expected_version
        super().__init__(f"Seller {seller_id} was modified concurrently (expected version {expected_version})")


class SellerRepository:
    """Persistence for the sellers table. Every write commits."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, values: Dict[str, Any]) -> Seller:
        seller = Seller(**values)
        self.session.add(seller)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(seller)
        return seller

    async def find_by_id(self, seller_id: int) -> Optional[Seller]:
        result = await self.session.execute(
            select(Seller)
            .where(Seller.id == seller_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: int) -> Optional[Seller]:
        result = await self.session.execute(
            select(Seller)
            .where(Seller.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_version(self, seller_id: int) -> Optional[int]:
        result = await self.session.execute(
            select(Seller.version).where(Seller.id == seller_id)
        )
        return result.scalar_one_or_none()

    def _apply_filters(self, query: Select, filters: Optional[SellerFilter]) -> Select:
        if filters is None:
            return query
        if filters.status:
            query = query.where(Seller.status == filters.status)
        if filters.verification_status:
            query = query.where(Seller.verification_status == filters.verification_status)
        if filters.min_rating is not None:
            query = query.where(Seller.rating >= filters.min_rating)
        if filters.search:
            pattern = f"%{filters.search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Seller.business_name).like(pattern),
                    func.lower(Seller.business_email).like(pattern),
                )
            )
        return query

    async def find_all(self, filters: Optional[SellerFilter] = None) -> List[Seller]:
        filters = filters or SellerFilter()
        query = self._apply_filters(select(Seller), filters)

        sort_column = getattr(Seller, filters.sort_by)
        order = sort_column.asc() if filters.sort_order == "asc" else sort_column.desc()
        # id as tie-breaker keeps pages stable when created_at collides
        query = query.order_by(order, Seller.id.asc() if filters.sort_order == "asc" else Seller.id.desc())
        query = query.limit(filters.limit).offset(filters.offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, filters: Optional[SellerFilter] = None) -> int:
        query = self._apply_filters(select(func.count(Seller.id)), filters)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def update(
        self,
        seller_id: int,
        values: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Seller:
        """
        Apply values and bump version.

        When expected_version is given the row is only updated if it still has that
        version; otherwise StaleSellerError is raised and nothing is written.
        """
        stmt = (
            update(Seller)
            .where(Seller.id == seller_id)
            .values(**values, version=Seller.version + 1)
            .execution_options(synchronize_session=False)
        )
        if expected_version is not None:
            stmt = stmt.where(Seller.version == expected_version)

        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                await self.session.rollback()
                raise StaleSellerError(seller_id, expected_version)
            await self.session.commit()
        except StaleSellerError:
            raise
        except Exception:
            await self.session.rollback()
            raise

        updated = await self.session.get(Seller, seller_id, populate_existing=True)
        if updated is None:
            raise StaleSellerError(seller_id, expected_version)
        return updated

    async def delete(self, seller_id: int, expected_version: Optional[int] = None) -> bool:
        """
        Delete a seller that has no products and no sales.

        Returns False when no row matched: the seller is gone, has dependents,
        or no longer has expected_version.
        """
        stmt = delete(Seller).where(
            Seller.id == seller_id,
            Seller.total_products == 0,
            Seller.total_sales == 0,
        )
        if expected_version is not None:
            stmt = stmt.where(Seller.version == expected_version)
        stmt = stmt.execution_options(synchronize_session=False)

        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount > 0

    async def find_by_status(self, status: SellerStatus) -> List[Seller]:
        result = await self.session.execute(
            select(Seller).where(Seller.status == status).order_by(Seller.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_pending_verification(self) -> List[Seller]:
        result = await self.session.execute(
            select(Seller)
            .where(Seller.verification_status == VerificationStatus.PENDING)
            .order_by(Seller.created_at.asc(), Seller.id.asc())
        )
        return list(result.scalars().all())
