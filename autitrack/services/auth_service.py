# auth service: password hashing
# salted scrypt hashes stored as "<derived key hex>.<salt hex>", verified in constant time

import hashlib
import re

from fastapi.concurrency import run_in_threadpool
from passlib import exc
from passlib.context import CryptContext
from passlib.utils import handlers as uh


SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16


class scrypt_hex(uh.HasSalt, uh.HasRawChecksum, uh.GenericHandler):
    """passlib handler for the "<key hex>.<salt hex>" scrypt format.

    the salt is the 32-char hex string itself (not its decoded bytes),
    so hashes produced by older deployments verify unchanged.
    """

    name = "scrypt_hex"
    setting_kwds = ("salt",)
    checksum_size = KEY_LENGTH

    salt_chars = "0123456789abcdef"
    min_salt_size = max_salt_size = default_salt_size = SALT_BYTES * 2

    _hash_regex = re.compile(r"^(?P<checksum>[0-9a-f]{%d})\.(?P<salt>[0-9a-f]{%d})$"
                             % (KEY_LENGTH * 2, SALT_BYTES * 2))

    @classmethod
    def from_string(cls, hash):
        if isinstance(hash, bytes):
            hash = hash.decode("ascii")
        if not isinstance(hash, str):
            raise exc.ExpectedStringError(hash, "hash")
        m = cls._hash_regex.match(hash)
        if not m:
            raise exc.MalformedHashError(cls)
        return cls(salt=m.group("salt"), checksum=bytes.fromhex(m.group("checksum")))

    def to_string(self):
        return "%s.%s" % (self.checksum.hex(), self.salt)

    def _calc_checksum(self, secret):
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        return hashlib.scrypt(
            secret,
            salt=self.salt.encode("ascii"),
            n=SCRYPT_N,
            r=SCRYPT_R,
            p=SCRYPT_P,
            dklen=KEY_LENGTH,
        )


pwd_context = CryptContext(schemes=[scrypt_hex])


def hash_password(password: str) -> str:
    """hash a plaintext password with a fresh random salt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """verify a plaintext password against a stored hash.

    returns False on mismatch; raises ValueError if the stored value is malformed.
    """
    return pwd_context.verify(plain_password, hashed_password)


# scrypt takes tens of milliseconds, request handlers run it in the threadpool

async def hash_password_async(password: str) -> str:
    return await run_in_threadpool(hash_password, password)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    return await run_in_threadpool(verify_password, plain_password, hashed_password)
