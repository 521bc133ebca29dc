import hashlib
import random


class PasswordStream:
    """
    XOR key stream derived from a password

    The seed comes from SHA-256 of the password, so the same password gives the
    same bit sequence in any process. Every instance owns its own generator;
    build a fresh one for each header pass.
    """

    def __init__(self, password: str):
        digest = hashlib.sha256(password.encode("utf-8")).digest()
        self.seed = int.from_bytes(digest[:8], "big")
        self._engine = random.Random(self.seed)

    def next_bit(self, original_bit) -> int:
        return (1 if original_bit else 0) ^ (self._engine.getrandbits(32) & 1) # XOR with the low bit of the next draw

    def next_bits(self, value: int, width: int) -> int:
        """XOR each of the low `width` bits of value, most significant first."""
        result = 0
        for i in range(width - 1, -1, -1):
            result = (result << 1) | self.next_bit((value >> i) & 1)
        return result
