import asyncio
from dataclasses import replace
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from repaso.application.card_service import CardService
from repaso.application.id_service import CARD_ID_PREFIX, generate_card_id
from repaso.domain.errors import (
    AccessDenied,
    CardNotFound,
    CardValidationError,
    ConcurrentUpdateError,
    InvalidGrade,
)


@pytest.fixture
def service(memory_repo, now):
    return CardService(memory_repo, clock=lambda: now)


def test_generate_card_id_is_unique_and_prefixed():
    ids = {generate_card_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(i.startswith(CARD_ID_PREFIX) for i in ids)


def test_retries_must_be_positive(memory_repo):
    with pytest.raises(ValueError):
        CardService(memory_repo, update_retries=0)


@pytest.mark.asyncio
async def test_create_card(service, now):
    card = await service.create_card("alice", " gato ", "cat")

    assert card.id.startswith(CARD_ID_PREFIX)
    assert card.front == "gato"
    assert card.version == 1
    assert card.created_at == now
    assert await service.get_card(card.id, "alice") == card


@pytest.mark.asyncio
async def test_create_card_rejects_empty_text(service, memory_repo):
    with pytest.raises(CardValidationError):
        await service.create_card("alice", "", "cat")
    assert await memory_repo.list_by_owner("alice") == []


@pytest.mark.asyncio
async def test_get_card_checks_owner(service):
    card = await service.create_card("alice", "gato", "cat")

    with pytest.raises(AccessDenied):
        await service.get_card(card.id, "bob")
    with pytest.raises(CardNotFound):
        await service.get_card("card_missing", "alice")


@pytest.mark.asyncio
async def test_review_card_persists(service, now):
    card = await service.create_card("alice", "gato", "cat")

    reviewed = await service.review_card(card.id, "alice", 5)

    assert reviewed.repetitions == 1
    assert reviewed.last_reviewed_at == now
    assert reviewed.version == 2
    assert await service.get_card(card.id, "alice") == reviewed


@pytest.mark.asyncio
async def test_review_card_explicit_now(service, now):
    card = await service.create_card("alice", "gato", "cat")
    later = now + timedelta(hours=3)

    reviewed = await service.review_card(card.id, "alice", 4, now=later)

    assert reviewed.last_reviewed_at == later


@pytest.mark.asyncio
async def test_invalid_grade_touches_nothing(make_card):
    repo = AsyncMock()
    service = CardService(repo)

    with pytest.raises(InvalidGrade):
        await service.review_card("card_1", "alice", 6)

    repo.get.assert_not_awaited()
    repo.save.assert_not_awaited()


@pytest.mark.asyncio
async def test_review_wrong_owner(service):
    card = await service.create_card("alice", "gato", "cat")
    with pytest.raises(AccessDenied):
        await service.review_card(card.id, "mallory", 5)
    assert (await service.get_card(card.id, "alice")).review_count == 0


@pytest.mark.asyncio
async def test_review_retries_after_conflict(make_card, now):
    card = make_card(version=1)
    repo = AsyncMock()
    repo.get.return_value = card
    repo.save.side_effect = [
        ConcurrentUpdateError(card.id, 1, 2),
        replace(card, version=2),
    ]
    service = CardService(repo, clock=lambda: now)

    await service.review_card(card.id, "alice", 5)

    assert repo.get.await_count == 2
    assert repo.save.await_count == 2
    _, kwargs = repo.save.await_args
    assert kwargs["expected_version"] == 1


@pytest.mark.asyncio
async def test_review_gives_up_after_retries(make_card, now):
    card = make_card(version=1)
    repo = AsyncMock()
    repo.get.return_value = card
    last_conflict = ConcurrentUpdateError(card.id, 1, 6)
    repo.save.side_effect = [ConcurrentUpdateError(card.id, 1, 5), last_conflict]
    service = CardService(repo, clock=lambda: now, update_retries=2)

    with pytest.raises(ConcurrentUpdateError) as exc_info:
        await service.review_card(card.id, "alice", 5)

    assert exc_info.value is last_conflict
    assert repo.save.await_count == 2
    assert repo.get.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_reviews_all_counted(service):
    card = await service.create_card("alice", "gato", "cat")

    await asyncio.gather(*(service.review_card(card.id, "alice", 4) for _ in range(10)))

    final = await service.get_card(card.id, "alice")
    assert final.review_count == 10
    assert final.version == 11


@pytest.mark.asyncio
async def test_update_content(service):
    card = await service.create_card("alice", "gato", "cat")
    reviewed = await service.review_card(card.id, "alice", 5)

    edited = await service.update_content(card.id, "alice", back="the cat")

    assert edited.back == "the cat"
    assert edited.interval_days == reviewed.interval_days
    assert edited.version == reviewed.version + 1


@pytest.mark.asyncio
async def test_update_content_without_changes_skips_write(make_card):
    card = make_card(version=3)
    repo = AsyncMock()
    repo.get.return_value = card
    service = CardService(repo)

    assert await service.update_content(card.id, "alice") is card
    repo.save.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_card(service):
    card = await service.create_card("alice", "gato", "cat")

    with pytest.raises(AccessDenied):
        await service.delete_card(card.id, "bob")

    await service.delete_card(card.id, "alice")

    with pytest.raises(CardNotFound):
        await service.get_card(card.id, "alice")


@pytest.mark.asyncio
async def test_list_cards_only_returns_owned(service):
    await service.create_card("alice", "uno", "one")
    await service.create_card("bob", "dos", "two")
    await service.create_card("alice", "tres", "three")

    cards = await service.list_cards("alice")

    assert sorted(c.front for c in cards) == ["tres", "uno"]
    assert [c.id for c in cards] == sorted(c.id for c in cards)


@pytest.mark.asyncio
async def test_import_legacy_card_keeps_legacy_due_date(service, memory_repo, now):
    last = now - timedelta(days=2)

    card = await service.import_legacy_card(
        "alice", "perro", "dog", level=3, last_reviewed_at=last, review_count=4
    )

    assert card.id.startswith(CARD_ID_PREFIX)
    assert card.version == 1
    assert card.repetitions == 3
    assert card.interval_days == 8
    assert card.next_review_at == last + timedelta(days=8)
    assert card.review_count == 4
    assert await memory_repo.get(card.id) == card


@pytest.mark.asyncio
async def test_import_legacy_card_never_reviewed(service, now):
    card = await service.import_legacy_card("alice", "perro", "dog")

    assert card.is_new
    assert card.created_at == now


@pytest.mark.asyncio
async def test_import_legacy_card_bad_level(service, memory_repo):
    with pytest.raises(CardValidationError):
        await service.import_legacy_card("alice", "perro", "dog", level=9)
    assert await memory_repo.list_by_owner("alice") == []
