import pytest

from securepad.errors import AlreadyExists, InvalidInput, NotFound, Unauthorized
from securepad.services import pad_store
from securepad.services.credentials import verify_secret


async def test_get_missing_pad(db):
    with pytest.raises(NotFound):
        await pad_store.get_pad(db, "ghost")


async def test_create_then_get(ctx, db, clock):
    await pad_store.create_pad(ctx, db, "demo", "abcd", alert_email="owner@securepad.io")

    pad = await pad_store.get_pad(db, "demo")
    assert pad.content == ""
    assert pad.alert_email == "owner@securepad.io"
    assert pad.created_at == pad.updated_at == clock.current
    assert pad.password_hash != "abcd"
    assert verify_secret("abcd", pad.password_hash)


async def test_create_existing_pad_keeps_original(ctx, db):
    original = await pad_store.create_pad(ctx, db, "demo", "abcd")
    with pytest.raises(AlreadyExists):
        await pad_store.create_pad(ctx, db, "demo", "other-secret")

    pad = await pad_store.get_pad(db, "demo")
    assert pad.password_hash == original.password_hash


@pytest.mark.parametrize("pad_id", ["ab", "x" * 51, "has space", "slash/id", ""])
async def test_create_rejects_invalid_ids(ctx, db, pad_id):
    with pytest.raises(InvalidInput):
        await pad_store.create_pad(ctx, db, pad_id, "abcd")


async def test_create_rejects_short_password(ctx, db):
    with pytest.raises(InvalidInput):
        await pad_store.create_pad(ctx, db, "demo", "abc")


def test_generated_ids_are_valid():
    ids = {pad_store.generate_pad_id() for _ in range(20)}
    assert len(ids) == 20
    assert all(pad_store.is_valid_pad_id(i) for i in ids)


async def test_update_content(ctx, db, clock):
    await pad_store.create_pad(ctx, db, "demo", "abcd")
    clock.advance(minutes=5)

    pad = await pad_store.update_content(ctx, db, "demo", "abcd", "hello world")
    assert pad.content == "hello world"
    assert pad.updated_at == clock.current
    assert pad.created_at < pad.updated_at


async def test_update_content_with_wrong_password(ctx, db):
    await pad_store.create_pad(ctx, db, "demo", "abcd")
    with pytest.raises(Unauthorized):
        await pad_store.update_content(ctx, db, "demo", "nope", "overwritten")

    pad = await pad_store.get_pad(db, "demo")
    assert pad.content == ""
