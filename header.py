"""
Encrypted frequency-table header

Layout, every bit XORed with a PasswordStream seeded from the password:
  32 bits   number N of entries, SENTINEL excluded
  N times:  8 bits symbol, 32 bits frequency
The SENTINEL count is never stored; readers put it back as 1.
"""

import logging
from typing import Dict

from bitio import BitReader, BitWriter, TruncatedStreamError
from huffman import SENTINEL
from password_stream import PasswordStream

logger = logging.getLogger(__name__)

COUNT_BITS = 32
SYMBOL_BITS = 8
FREQUENCY_BITS = 32
MAX_ENTRIES = 256 # one per byte value


class MalformedHeaderError(ValueError):
    """The header is truncated or decrypts to an impossible table."""


def _write_field(writer: BitWriter, stream: PasswordStream, value: int, width: int) -> None:
    writer.write_bits(stream.next_bits(value, width), width)


def _read_field(reader: BitReader, stream: PasswordStream, width: int) -> int:
    # both sides consume the key stream MSB-first, one draw per bit
    return stream.next_bits(reader.read_bits(width), width)


def write_encrypted_header(writer: BitWriter, frequencies: Dict[int, int], password: str) -> int:
    """
    Write the frequency table under the password stream
    Returns the number of header bits written
    """
    if SENTINEL not in frequencies:
        raise ValueError("frequency table has no end-of-data entry")

    symbols = sorted(s for s in frequencies if s != SENTINEL)
    if len(symbols) > MAX_ENTRIES:
        raise ValueError(f"frequency table has {len(symbols)} entries, at most {MAX_ENTRIES} fit")

    for symbol in symbols:
        freq = frequencies[symbol]
        if not 0 <= symbol < (1 << SYMBOL_BITS):
            raise ValueError(f"symbol {symbol} does not fit in {SYMBOL_BITS} bits")
        if not 0 < freq < (1 << FREQUENCY_BITS):
            raise ValueError(f"frequency {freq} of symbol {symbol} does not fit in {FREQUENCY_BITS} bits")

    stream = PasswordStream(password)
    start = writer.bits_written

    _write_field(writer, stream, len(symbols), COUNT_BITS)
    for symbol in symbols:
        _write_field(writer, stream, symbol, SYMBOL_BITS)
        _write_field(writer, stream, frequencies[symbol], FREQUENCY_BITS)

    header_bits = writer.bits_written - start
    logger.debug("wrote header: %d entries, %d bits", len(symbols), header_bits)
    return header_bits


def read_encrypted_header(reader: BitReader, password: str) -> Dict[int, int]:
    """
    Read and decrypt a header written by write_encrypted_header

    A wrong password usually shows up as an impossible entry count or a
    truncated read, both raised as MalformedHeaderError. It can also decrypt
    to a plausible table, which the header alone cannot tell apart.
    """
    stream = PasswordStream(password)
    result: Dict[int, int] = {}

    try:
        count = _read_field(reader, stream, COUNT_BITS)
        if count > MAX_ENTRIES:
            raise MalformedHeaderError(f"header declares {count} entries, at most {MAX_ENTRIES} are possible")

        for _ in range(count):
            symbol = _read_field(reader, stream, SYMBOL_BITS)
            freq = _read_field(reader, stream, FREQUENCY_BITS)
            if freq == 0:
                raise MalformedHeaderError(f"header gives symbol {symbol} a zero frequency")
            result[symbol] = freq
    except TruncatedStreamError as exc:
        raise MalformedHeaderError(f"header truncated after {reader.bits_read} bits") from exc

    result[SENTINEL] = 1
    logger.debug("read header: %d entries", count)
    return result
