from datetime import datetime, timedelta, timezone

import pytest

from anymo_backend.database.core.funcs import (
    ChatNotFoundError,
    create_chat,
    delete_chat,
    get_chat,
    get_chats,
    update_chat,
)

T0 = datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc)


def _create(text: str, created_at: datetime = T0, **overrides) -> dict:
    fields = dict(start_with_doctor=False, text=text, risk_score=0, memo="", created_at=created_at)
    fields.update(overrides)
    return create_chat(**fields)


def _without_timestamp(record: dict) -> dict:
    return {key: value for key, value in record.items() if key != "createdAt"}


def test_create_then_get_round_trip() -> None:
    created = _create("Doctor: hello@@Patient: hi", start_with_doctor=True, risk_score=64, memo="Sentiment: neutral")

    fetched = get_chat(chat_id=created["id"])

    assert isinstance(created["id"], int)
    assert _without_timestamp(fetched) == _without_timestamp(created)
    assert fetched["createdAt"].replace(tzinfo=None) == T0.replace(tzinfo=None)


def test_ids_are_unique() -> None:
    first = _create("a")
    second = _create("b")
    assert first["id"] != second["id"]


def test_list_is_newest_first_regardless_of_insertion_order() -> None:
    _create("middle", created_at=T0 + timedelta(minutes=5))
    _create("oldest", created_at=T0)
    _create("newest", created_at=T0 + timedelta(hours=1))

    assert [chat["text"] for chat in get_chats()] == ["newest", "middle", "oldest"]


def test_list_of_empty_store() -> None:
    assert get_chats() == []


def test_partial_update_leaves_other_fields_unchanged() -> None:
    created = _create("text", start_with_doctor=True, risk_score=30, memo="old")

    updated = update_chat(chat_id=created["id"], fields={"memo": "new note"})

    assert updated["memo"] == "new note"
    assert _without_timestamp(updated) == {**_without_timestamp(created), "memo": "new note"}
    assert _without_timestamp(get_chat(chat_id=created["id"])) == _without_timestamp(updated)


def test_update_cannot_touch_identity_or_creation_time() -> None:
    created = _create("text")

    updated = update_chat(
        chat_id=created["id"],
        fields={"id": 999, "created_at": T0 + timedelta(days=3), "risk_score": 12},
    )

    assert updated["id"] == created["id"]
    assert updated["riskScore"] == 12
    assert updated["createdAt"].replace(tzinfo=None) == T0.replace(tzinfo=None)


def test_update_unknown_id() -> None:
    with pytest.raises(ChatNotFoundError):
        update_chat(chat_id=12345, fields={"memo": "x"})


def test_delete_then_get_is_not_found() -> None:
    created = _create("text")

    delete_chat(chat_id=created["id"])

    with pytest.raises(ChatNotFoundError):
        get_chat(chat_id=created["id"])


def test_delete_unknown_id() -> None:
    with pytest.raises(ChatNotFoundError):
        delete_chat(chat_id=12345)
