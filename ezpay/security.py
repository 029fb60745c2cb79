"""
PIN hashing helpers.

UPI PINs are stored as bcrypt hashes; the raw PIN never reaches the database.
"""

from typing import Optional

import bcrypt

from ezpay.config import settings


class PinHasher:
    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds or settings.pin_hash_rounds

    def hash(self, pin: str) -> str:
        return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, pin: Optional[str], hashed: Optional[str]) -> bool:
        if pin is None or not hashed:
            return False
        try:
            return bcrypt.checkpw(pin.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # not a bcrypt hash
            return False
