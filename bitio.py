import logging
from typing import BinaryIO

logger = logging.getLogger(__name__)


class TruncatedStreamError(EOFError):
    """Raised when a BitReader runs out of bytes in the middle of a read."""


class BitWriter: # packs bits MSB-first into a binary stream
    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.acc = 0 # pending bits, oldest in the high positions
        self.acc_bits = 0
        self.bits_written = 0

    def write_bit(self, bit) -> None:
        self.acc = (self.acc << 1) | (1 if bit else 0)
        self.acc_bits += 1
        self.bits_written += 1
        if self.acc_bits == 8:
            self.stream.write(bytes([self.acc]))
            self.acc = 0
            self.acc_bits = 0

    def write_bits(self, value: int, width: int) -> None:
        """Write the low `width` bits of value, most significant first."""
        for i in range(width - 1, -1, -1):
            self.write_bit((value >> i) & 1)

    def flush(self) -> int:
        """
        Pad the last partial byte with zero bits and write it out
        Returns the number of pad bits added
        """
        pad_bits = 0
        if self.acc_bits != 0:
            pad_bits = 8 - self.acc_bits
            self.stream.write(bytes([(self.acc << pad_bits) & 0xFF]))
            self.acc = 0
            self.acc_bits = 0
        logger.debug("flushed %d bits (%d pad bits)", self.bits_written, pad_bits)
        return pad_bits

    def __enter__(self) -> "BitWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # the underlying stream belongs to the caller, only flush
        self.flush()


class BitReader: # mirrors BitWriter
    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.current = 0
        self.mask = 0 # 0 means a fresh byte must be read
        self.bits_read = 0

    def read_bit(self) -> int:
        if self.mask == 0:
            chunk = self.stream.read(1)
            if not chunk:
                raise TruncatedStreamError(f"bit stream ended after {self.bits_read} bits")
            self.current = chunk[0]
            self.mask = 0x80
        bit = 1 if self.current & self.mask else 0
        self.mask >>= 1
        self.bits_read += 1
        return bit

    def read_bits(self, width: int) -> int:
        value = 0
        for _ in range(width):
            value = (value << 1) | self.read_bit()
        return value
