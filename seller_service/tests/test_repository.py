"""
Tests for SellerRepository against in-memory SQLite.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from seller_service.app.models.seller import SellerStatus, VerificationStatus
from seller_service.app.repositories.sellers import StaleSellerError


@pytest.mark.asyncio
async def test_create_and_find(repository):
    seller = await repository.create({"user_id": 42, "business_name": "Acme"})

    assert seller.id is not None
    assert seller.status == SellerStatus.PENDING
    assert seller.verification_status == VerificationStatus.UNVERIFIED
    assert seller.version == 1
    assert seller.created_at is not None
    assert (await repository.find_by_id(seller.id)).user_id == 42
    assert (await repository.find_by_user_id(42)).id == seller.id
    assert await repository.find_by_user_id(43) is None


@pytest.mark.asyncio
async def test_user_id_is_unique(repository, test_seller):
    with pytest.raises(IntegrityError):
        await repository.create({"user_id": 42, "business_name": "Second"})
    assert await repository.count() == 1


@pytest.mark.asyncio
async def test_update_bumps_version(repository, test_seller):
    updated = await repository.update(test_seller.id, {"description": "New"}, expected_version=1)
    assert updated.description == "New"
    assert updated.version == 2


@pytest.mark.asyncio
async def test_update_with_stale_version(repository, test_seller):
    await repository.update(test_seller.id, {"description": "First"})

    with pytest.raises(StaleSellerError) as exc_info:
        await repository.update(test_seller.id, {"description": "Second"}, expected_version=1)
    assert exc_info.value.expected_version == 1

    stored = await repository.find_by_id(test_seller.id)
    assert stored.description == "First"
    assert stored.version == 2


@pytest.mark.asyncio
async def test_update_missing_row(repository):
    with pytest.raises(StaleSellerError):
        await repository.update(404, {"description": "x"})


@pytest.mark.asyncio
async def test_delete(repository, test_seller):
    assert await repository.delete(test_seller.id) is True
    assert await repository.delete(test_seller.id) is False


@pytest.mark.asyncio
async def test_delete_skips_sellers_with_dependents(repository, seller_factory):
    seller = await seller_factory(total_sales=2)
    assert await repository.delete(seller.id) is False
    assert await repository.find_by_id(seller.id) is not None


@pytest.mark.asyncio
async def test_delete_with_stale_version(repository, test_seller):
    await repository.update(test_seller.id, {"description": "Edited"})

    assert await repository.delete(test_seller.id, expected_version=1) is False
    assert await repository.get_version(test_seller.id) == 2
    assert await repository.delete(test_seller.id, expected_version=2) is True
    assert await repository.get_version(test_seller.id) is None


@pytest.mark.asyncio
async def test_find_by_status(repository, seller_factory):
    await seller_factory(100, status=SellerStatus.ACTIVE)
    await seller_factory(101, status=SellerStatus.SUSPENDED)
    await seller_factory(102, status=SellerStatus.ACTIVE)

    active = await repository.find_by_status(SellerStatus.ACTIVE)
    assert sorted(s.user_id for s in active) == [100, 102]


@pytest.mark.asyncio
async def test_to_dict_hides_banking(seller_factory):
    seller = await seller_factory(bank_account_number="000123", bank_name="First Bank")

    snapshot = seller.to_dict()
    assert snapshot["has_banking_info"] is True
    assert "bank_account_number" not in snapshot
    assert seller.to_dict(include_banking=True)["bank_account_number"] == "000123"
