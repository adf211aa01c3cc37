import pytest

from app.features.waitlist.services.store import WaitlistStore
from app.platform.exceptions import (
    DuplicateEmailError,
    ReferralCodeCollisionError,
    ReferralNotFoundError,
)


@pytest.fixture
def store(db_session):
    return WaitlistStore(db_session)


@pytest.mark.asyncio
async def test_insert_and_lookup(store):
    entry = await store.insert(email="Alice@Example.com", referral_code="CODE000001", source="popup")

    assert entry.id
    assert entry.email == "alice@example.com"
    assert entry.referral_count == 0
    assert entry.source == "popup"
    assert entry.created_at is not None

    assert (await store.get_by_email("ALICE@example.com")).id == entry.id
    assert (await store.get_by_code("CODE000001")).id == entry.id
    assert await store.get_by_code("missing") is None
    assert await store.get_by_email("nobody@example.com") is None


@pytest.mark.asyncio
async def test_insert_duplicate_email_any_case(store):
    await store.insert(email="alice@example.com", referral_code="CODE000001")

    with pytest.raises(DuplicateEmailError):
        await store.insert(email="ALICE@example.com", referral_code="CODE000002")

    assert await store.count() == 1


@pytest.mark.asyncio
async def test_insert_referral_code_collision(store):
    await store.insert(email="alice@example.com", referral_code="CODE000001")

    with pytest.raises(ReferralCodeCollisionError):
        await store.insert(email="bob@example.com", referral_code="CODE000001")

    assert await store.get_by_email("bob@example.com") is None


@pytest.mark.asyncio
async def test_increment_referral_count(store):
    referrer = await store.insert(email="alice@example.com", referral_code="CODE000001")

    await store.increment_referral_count(referrer.id)
    await store.increment_referral_count(referrer.id)

    assert (await store.get_by_id(referrer.id)).referral_count == 2


@pytest.mark.asyncio
async def test_increment_unknown_entry(store):
    with pytest.raises(ReferralNotFoundError):
        await store.increment_referral_count("does-not-exist")


@pytest.mark.asyncio
async def test_list_referrals(store):
    referrer = await store.insert(email="alice@example.com", referral_code="CODE000001")
    await store.insert(email="bob@example.com", referral_code="CODE000002", referrer_id=referrer.id)
    await store.insert(email="carol@example.com", referral_code="CODE000003")

    referrals = await store.list_referrals(referrer.id)

    assert [r.email for r in referrals] == ["bob@example.com"]


@pytest.mark.asyncio
async def test_list_entries_paginates_newest_first(store):
    for i in range(5):
        await store.insert(email=f"user{i}@example.com", referral_code=f"CODE00000{i}")

    first_page, total = await store.list_entries(page=1, per_page=2)
    last_page, _ = await store.list_entries(page=3, per_page=2)

    assert total == 5
    assert [e.email for e in first_page] == ["user4@example.com", "user3@example.com"]
    assert [e.email for e in last_page] == ["user0@example.com"]
