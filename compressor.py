"""
Password-protected Huffman compressor

Compressed layout: encrypted frequency header (see header.py) followed directly
by the Huffman-coded payload, terminated by the code of the end-of-data symbol.
Only the header is encrypted.

How to run:
  python compressor.py compress input.bin output.huf
  python compressor.py decompress output.huf restored.bin --password secret
"""

from __future__ import annotations

import argparse
import getpass
import io
import logging
import sys
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

import huffman as huff
from bitio import BitReader, BitWriter, TruncatedStreamError
from header import MalformedHeaderError, read_encrypted_header, write_encrypted_header

logger = logging.getLogger(__name__)


@dataclass
class CompressionStats:
    original_bytes: int
    compressed_bytes: int
    header_bits: int
    payload_bits: int
    distinct_symbols: int # byte values only, the end-of-data symbol is not counted

    @property
    def ratio(self) -> float:
        return self.compressed_bytes / max(1, self.original_bytes)


def compress(source: BinaryIO, sink: BinaryIO, password: str) -> CompressionStats:
    """
    source must be seekable: it is scanned once for frequencies from its current
    position, then rewound to that same position to encode
    """
    start = source.tell()
    frequency_table = huff.build_frequency_table(source)
    root = huff.build_huffman_tree(frequency_table)
    code_map = huff.generate_huffman_codes(root)

    writer = BitWriter(sink)
    header_bits = write_encrypted_header(writer, frequency_table, password)
    source.seek(start)
    payload_bits = huff.encode_stream(source, code_map, writer)
    writer.flush()

    original_bytes = sum(f for s, f in frequency_table.items() if s != huff.SENTINEL)
    total_bits = header_bits + payload_bits
    stats = CompressionStats(
        original_bytes=original_bytes,
        compressed_bytes=(total_bits + 7) // 8,
        header_bits=header_bits,
        payload_bits=payload_bits,
        distinct_symbols=len(frequency_table) - 1,
    )
    logger.debug("compress: %s", stats)
    return stats


def decompress(source: BinaryIO, sink: BinaryIO, password: str) -> int:
    reader = BitReader(source)
    frequency_table = read_encrypted_header(reader, password)
    root = huff.build_huffman_tree(frequency_table)
    written = huff.decode_stream(reader, root, sink)
    logger.debug("decompress: %d bytes from %d bits", written, reader.bits_read)
    return written


def compress_bytes(data: bytes, password: str) -> bytes:
    out = io.BytesIO()
    compress(io.BytesIO(data), out, password)
    return out.getvalue()


def decompress_bytes(blob: bytes, password: str) -> bytes:
    out = io.BytesIO()
    decompress(io.BytesIO(blob), out, password)
    return out.getvalue()


def compress_file(input_path, output_path, password: str) -> CompressionStats:
    with open(input_path, "rb") as infile, open(output_path, "wb") as outfile:
        return compress(infile, outfile, password)


def decompress_file(input_path, output_path, password: str) -> int:
    with open(input_path, "rb") as infile, open(output_path, "wb") as outfile:
        return decompress(infile, outfile, password)


# Main

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Huffman compressor with a password-encrypted header")
    ap.add_argument("--verbose", action="store_true", help="Log codec details")
    sub = ap.add_subparsers(dest="command", required=True)
    for name in ("compress", "decompress"):
        p = sub.add_parser(name)
        p.add_argument("input", type=str, help="Input file")
        p.add_argument("output", type=str, help="Output file")
        p.add_argument("--password", type=str, default=None, help="Password (prompted for when omitted)")

    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    password = args.password
    if password is None:
        password = getpass.getpass("Enter password: ")

    try:
        if args.command == "compress":
            stats = compress_file(args.input, args.output, password)
            print(f"Compressed {args.input} ({stats.original_bytes} bytes) -> "
                  f"{args.output} ({stats.compressed_bytes} bytes), ratio {stats.ratio:.3f}")
        else:
            written = decompress_file(args.input, args.output, password)
            print(f"Decompressed {args.input} -> {args.output} ({written} bytes)")
    except (MalformedHeaderError, TruncatedStreamError) as e:
        print(f"error: {args.input} is corrupt or the password is wrong: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
