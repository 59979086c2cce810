"""Password hashing for pads.

bcrypt is salted and deliberately slow; the pad password is the only access
control, so the digest has to resist offline guessing. checkpw compares in
constant time. Both calls are CPU bound and run in a worker thread from
async code.
"""
import asyncio
import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _encode(secret: str) -> bytes:
    return secret.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_secret(secret: str, rounds: int = 12) -> str:
    """Return a salted bcrypt digest of `secret`."""
    return bcrypt.hashpw(_encode(secret), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_secret(secret: str, digest: str) -> bool:
    """Check `secret` against a stored digest. A malformed digest never verifies."""
    if not secret or not digest:
        return False
    try:
        return bcrypt.checkpw(_encode(secret), digest.encode("ascii"))
    except ValueError:
        logger.warning("Stored password digest is malformed")
        return False


async def hash_secret_async(secret: str, rounds: int = 12) -> str:
    return await asyncio.to_thread(hash_secret, secret, rounds)


async def verify_secret_async(secret: str, digest: str) -> bool:
    return await asyncio.to_thread(verify_secret, secret, digest)
