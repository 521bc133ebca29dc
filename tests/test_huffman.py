import io
import random

import pytest

import huffman as huff
from bitio import BitReader, BitWriter, TruncatedStreamError


def _table(data: bytes):
    return huff.build_frequency_table(io.BytesIO(data))


def _encode(data: bytes, root):
    out = io.BytesIO()
    writer = BitWriter(out)
    bits = huff.encode_stream(io.BytesIO(data), huff.generate_huffman_codes(root), writer)
    writer.flush()
    return out.getvalue(), bits


def _walk(node):
    yield node
    if not node.is_leaf():
        yield from _walk(node.zero)
        yield from _walk(node.one)


def test_frequency_table_empty_input_has_only_sentinel():
    assert _table(b"") == {huff.SENTINEL: 1}


def test_frequency_table_counts_bytes():
    assert _table(b"a" * 100) == {ord("a"): 100, huff.SENTINEL: 1}
    assert _table(b"abracadabra") == {
        ord("a"): 5, ord("b"): 2, ord("r"): 2, ord("c"): 1, ord("d"): 1, huff.SENTINEL: 1,
    }


def test_frequency_table_reads_past_one_chunk():
    data = b"xy" * (huff.CHUNK_SIZE // 2 + 10)
    ft = _table(data)
    assert ft[ord("x")] + ft[ord("y")] == len(data)
    assert ft[huff.SENTINEL] == 1


def test_sentinel_is_outside_byte_range():
    assert huff.SENTINEL not in range(256)


def test_empty_table_is_rejected():
    with pytest.raises(ValueError):
        huff.build_huffman_tree({})


def test_single_entry_table_gives_single_leaf():
    root = huff.build_huffman_tree({huff.SENTINEL: 1})
    assert root.is_leaf()
    assert root.symbol == huff.SENTINEL
    assert huff.generate_huffman_codes(root) == {huff.SENTINEL: ""}


def test_two_symbols_get_one_bit_each():
    root = huff.build_huffman_tree(_table(b"a" * 100))
    codes = huff.generate_huffman_codes(root)
    assert sorted(codes.values()) == ["0", "1"]
    leaves = [n for n in _walk(root) if n.is_leaf()]
    assert len(leaves) == 2


def test_codes_are_prefix_free():
    rng = random.Random(7)
    for size in (1, 10, 300, 5000):
        data = bytes(rng.randrange(0, 40) for _ in range(size))
        codes = list(huff.generate_huffman_codes(huff.build_huffman_tree(_table(data))).values())
        for i, a in enumerate(codes):
            assert a
            for j, b in enumerate(codes):
                if i != j:
                    assert not b.startswith(a)


def test_weight_conservation():
    ft = _table(b"the quick brown fox jumps over the lazy dog" * 3)
    root = huff.build_huffman_tree(ft)
    for node in _walk(root):
        if not node.is_leaf():
            assert node.frequency == node.zero.frequency + node.one.frequency
    assert root.frequency == sum(ft.values())


def test_every_symbol_is_exactly_one_leaf():
    ft = _table(bytes(range(256)))
    leaves = [n.symbol for n in _walk(huff.build_huffman_tree(ft)) if n.is_leaf()]
    assert sorted(leaves) == sorted(ft)


def test_tree_shape_ignores_table_insertion_order():
    ft = _table(b"mississippi river banks")
    shuffled = dict(reversed(list(ft.items())))
    assert huff.generate_huffman_codes(huff.build_huffman_tree(ft)) == \
        huff.generate_huffman_codes(huff.build_huffman_tree(shuffled))


def test_encode_decode_abracadabra():
    data = b"abracadabra"
    root = huff.build_huffman_tree(_table(data))
    blob, bits = _encode(data, root)
    assert len(blob) == (bits + 7) // 8

    sink = io.BytesIO()
    written = huff.decode_stream(BitReader(io.BytesIO(blob)), root, sink)
    assert written == len(data)
    assert sink.getvalue() == data


def test_encode_repeated_byte_uses_one_bit_per_symbol():
    data = b"a" * 100
    root = huff.build_huffman_tree(_table(data))
    _, bits = _encode(data, root)
    assert bits == 101 # 100 symbols plus the end-of-data code


def test_encode_empty_input_writes_no_bits():
    root = huff.build_huffman_tree(_table(b""))
    blob, bits = _encode(b"", root)
    assert bits == 0
    assert blob == b""

    sink = io.BytesIO()
    assert huff.decode_stream(BitReader(io.BytesIO(b"")), root, sink) == 0
    assert sink.getvalue() == b""


def test_encode_unknown_symbol_fails():
    root = huff.build_huffman_tree(_table(b"aaab"))
    writer = BitWriter(io.BytesIO())
    with pytest.raises(ValueError):
        huff.encode_stream(io.BytesIO(b"abc"), huff.generate_huffman_codes(root), writer)


def test_decode_truncated_payload_fails():
    data = b"This is a test" * 20
    root = huff.build_huffman_tree(_table(data))
    blob, _ = _encode(data, root)
    with pytest.raises(TruncatedStreamError):
        huff.decode_stream(BitReader(io.BytesIO(blob[:-3])), root, io.BytesIO())


def test_decode_without_tree_fails():
    with pytest.raises(ValueError):
        huff.decode_stream(BitReader(io.BytesIO(b"\x00")), None, io.BytesIO())


def test_decode_single_leaf_without_sentinel_fails():
    root = huff.HuffmanNode(ord("a"), 3)
    with pytest.raises(ValueError):
        huff.decode_stream(BitReader(io.BytesIO(b"\x00")), root, io.BytesIO())


def test_decode_large_output_spans_chunks():
    data = bytes(random.Random(3).randrange(0, 4) for _ in range(huff.CHUNK_SIZE + 100))
    root = huff.build_huffman_tree(_table(data))
    blob, _ = _encode(data, root)
    sink = io.BytesIO()
    assert huff.decode_stream(BitReader(io.BytesIO(blob)), root, sink) == len(data)
    assert sink.getvalue() == data
