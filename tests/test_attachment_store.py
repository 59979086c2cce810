from datetime import timedelta

import pytest
import pytest_asyncio

from securepad.errors import Expired, InvalidFile, NotFound, TooLarge, Unauthorized
from securepad.services import attachment_store, pad_store, sweeper

from samples import PDF_BYTES, PNG_BYTES, TEXT_BYTES


async def _upload(ctx, db, pad_id="demo", password="abcd", payload=PNG_BYTES, name="pic.png"):
    return await attachment_store.upload_attachment(
        ctx, db, pad_id, password, filename=name, declared_type="image/png", payload=payload,
    )


@pytest_asyncio.fixture
async def demo_pad(ctx, db):
    return await pad_store.create_pad(ctx, db, "demo", "abcd")


async def test_upload_sets_expiry_from_upload_time(ctx, db, clock, demo_pad, upload_dir):
    _, attachment = await _upload(ctx, db)

    assert attachment.uploaded_at == clock.current
    assert attachment.expires_at - attachment.uploaded_at == timedelta(hours=24)
    assert attachment.media_type == "image/png"
    assert attachment.declared_type == "image/png"
    assert attachment.size_bytes == len(PNG_BYTES)
    assert (upload_dir / attachment.storage_key).read_bytes() == PNG_BYTES


async def test_upload_keeps_only_the_base_filename(ctx, db, demo_pad):
    _, attachment = await _upload(ctx, db, name="../../etc/pic.png")
    assert attachment.original_name == "pic.png"
    assert attachment.storage_key.startswith("demo/")


async def test_upload_rejections_store_nothing(ctx, db, demo_pad, upload_dir):
    with pytest.raises(Unauthorized):
        await _upload(ctx, db, password="wrong")
    with pytest.raises(InvalidFile):
        await _upload(ctx, db, payload=TEXT_BYTES, name="notes.pdf")
    ctx.settings.MAX_UPLOAD_BYTES = 16
    with pytest.raises(TooLarge):
        await _upload(ctx, db)

    assert [p for p in upload_dir.rglob("*") if p.is_file()] == []
    assert await attachment_store.list_live(ctx, db, "demo") == []


async def test_upload_to_missing_pad(ctx, db):
    with pytest.raises(NotFound):
        await _upload(ctx, db, pad_id="nobody")


async def test_get_live_attachment(ctx, db, demo_pad):
    _, uploaded = await _upload(ctx, db)
    pad, attachment = await attachment_store.get_attachment(ctx, db, "demo", "abcd", uploaded.id)
    assert pad.id == "demo"
    assert attachment.id == uploaded.id


async def test_get_unknown_attachment(ctx, db, demo_pad):
    with pytest.raises(NotFound):
        await attachment_store.get_attachment(ctx, db, "demo", "abcd", "0" * 32)


async def test_expired_attachment_is_purged_on_access(ctx, db, clock, demo_pad, upload_dir):
    _, uploaded = await _upload(ctx, db)
    clock.advance(hours=24, seconds=1)

    with pytest.raises(Expired):
        await attachment_store.get_attachment(ctx, db, "demo", "abcd", uploaded.id)

    assert not (upload_dir / uploaded.storage_key).exists()
    assert await attachment_store.list_live(ctx, db, "demo") == []
    with pytest.raises(NotFound):
        await attachment_store.get_attachment(ctx, db, "demo", "abcd", uploaded.id)


async def test_purge_expired_is_idempotent(ctx, db, clock, demo_pad):
    await _upload(ctx, db)
    await _upload(ctx, db, payload=PDF_BYTES, name="doc.pdf")
    clock.advance(days=2)

    assert await attachment_store.purge_expired(ctx, db, "demo") == 2
    assert await attachment_store.purge_expired(ctx, db, "demo") == 0


async def test_purge_leaves_live_attachments(ctx, db, clock, demo_pad):
    await _upload(ctx, db)
    clock.advance(hours=20)
    _, fresh = await _upload(ctx, db, payload=PDF_BYTES, name="doc.pdf")
    clock.advance(hours=5)

    live = await attachment_store.list_live(ctx, db, "demo")
    assert [a.id for a in live] == [fresh.id]


async def test_failed_payload_delete_keeps_row_for_retry(ctx, db, clock, demo_pad, monkeypatch):
    _, stuck = await _upload(ctx, db)
    await _upload(ctx, db, payload=PDF_BYTES, name="doc.pdf")
    clock.advance(days=1, seconds=1)

    real_delete = ctx.storage.delete

    async def flaky_delete(key):
        if key == stuck.storage_key:
            raise OSError("disk busy")
        return await real_delete(key)

    monkeypatch.setattr(ctx.storage, "delete", flaky_delete)
    assert await attachment_store.purge_expired(ctx, db, "demo") == 1
    assert await attachment_store.list_live(ctx, db, "demo") == []
    with pytest.raises(Expired):
        await attachment_store.get_attachment(ctx, db, "demo", "abcd", stuck.id)

    monkeypatch.setattr(ctx.storage, "delete", real_delete)
    assert await attachment_store.purge_expired(ctx, db, "demo") == 1
    assert await attachment_store.list_live(ctx, db, "demo") == []


async def test_missing_payload_still_purges_metadata(ctx, db, clock, demo_pad, upload_dir):
    _, uploaded = await _upload(ctx, db)
    (upload_dir / uploaded.storage_key).unlink()
    clock.advance(days=1, seconds=1)

    assert await attachment_store.purge_expired(ctx, db, "demo") == 1


async def test_delete_attachment(ctx, db, demo_pad, upload_dir):
    _, uploaded = await _upload(ctx, db)
    await attachment_store.delete_attachment(ctx, db, "demo", "abcd", uploaded.id)

    assert not (upload_dir / uploaded.storage_key).exists()
    with pytest.raises(NotFound):
        await attachment_store.delete_attachment(ctx, db, "demo", "abcd", uploaded.id)


async def test_sweep_covers_every_pad(ctx, db, clock, upload_dir):
    await pad_store.create_pad(ctx, db, "first", "abcd")
    await pad_store.create_pad(ctx, db, "second", "abcd")
    _, a = await _upload(ctx, db, pad_id="first")
    _, b = await _upload(ctx, db, pad_id="second")
    clock.advance(hours=25)
    _, live = await _upload(ctx, db, pad_id="first", payload=PDF_BYTES, name="doc.pdf")

    assert await sweeper.sweep_expired(ctx) == 2
    assert not (upload_dir / a.storage_key).exists()
    assert not (upload_dir / b.storage_key).exists()
    assert (upload_dir / live.storage_key).exists()

    async with ctx.session_factory() as session:
        remaining = await attachment_store.list_live(ctx, session, "first")
    assert [x.id for x in remaining] == [live.id]


async def test_sweep_continues_after_a_failing_pad(ctx, db, clock, monkeypatch):
    await pad_store.create_pad(ctx, db, "broken", "abcd")
    await pad_store.create_pad(ctx, db, "healthy", "abcd")
    await _upload(ctx, db, pad_id="broken")
    await _upload(ctx, db, pad_id="healthy")
    clock.advance(days=3)

    real_purge = attachment_store.purge_expired

    async def purge(ctx_, session, pad_id):
        if pad_id == "broken":
            raise RuntimeError("boom")
        return await real_purge(ctx_, session, pad_id)

    monkeypatch.setattr(sweeper, "purge_expired", purge)
    assert await sweeper.sweep_expired(ctx) == 1


async def test_sweep_with_nothing_to_do(ctx):
    assert await sweeper.sweep_expired(ctx) == 0
