from securepad.services.credentials import (
    hash_secret,
    hash_secret_async,
    verify_secret,
    verify_secret_async,
)


def test_hash_then_verify():
    digest = hash_secret("abcd", rounds=4)
    assert digest != "abcd"
    assert verify_secret("abcd", digest)


def test_wrong_secret_does_not_verify():
    digest = hash_secret("abcd", rounds=4)
    assert not verify_secret("abce", digest)
    assert not verify_secret("", digest)


def test_digest_is_salted():
    assert hash_secret("same secret", rounds=4) != hash_secret("same secret", rounds=4)


def test_malformed_digest_never_verifies():
    assert not verify_secret("abcd", "not-a-bcrypt-digest")
    assert not verify_secret("abcd", "")


def test_secrets_beyond_72_bytes_share_a_digest():
    base = "x" * 72
    digest = hash_secret(base + "tail-one", rounds=4)
    assert verify_secret(base + "tail-two", digest)


async def test_async_wrappers():
    digest = await hash_secret_async("hunter22", rounds=4)
    assert await verify_secret_async("hunter22", digest)
    assert not await verify_secret_async("hunter23", digest)
