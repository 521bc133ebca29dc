import heapq
import logging
from typing import BinaryIO, Dict

from bitio import BitReader, BitWriter

logger = logging.getLogger(__name__)

SENTINEL = 256 # end-of-data symbol, outside the byte range
CHUNK_SIZE = 64 * 1024


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, order=0):
        self.symbol = symbol    # byte, SENTINEL, or None for internal nodes
        self.frequency = frequency
        self.order = order      # tie-break key, derived only from the table contents
        self.zero = None
        self.one = None

    def is_leaf(self) -> bool:
        return self.zero is None and self.one is None

    def __lt__(self, other):
        # equal weights fall back to order so both sides rebuild the same tree
        return (self.frequency, self.order) < (other.frequency, other.order)


def build_frequency_table(source: BinaryIO) -> Dict[int, int]: # source: binary stream, read once to the end
    frequency_table: Dict[int, int] = {}
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        for byte in chunk:
            frequency_table[byte] = frequency_table.get(byte, 0) + 1

    frequency_table[SENTINEL] = 1
    logger.debug("frequency table: %d distinct symbols", len(frequency_table))
    return frequency_table


def build_huffman_tree(frequency_table): # frequency_table: dict of symbol -> frequency
    if not frequency_table:
        raise ValueError("cannot build a Huffman tree from an empty frequency table")

    priority_queue = [HuffmanNode(symbol, frequency_table[symbol], order=symbol)
                      for symbol in sorted(frequency_table)]
    heapq.heapify(priority_queue)

    next_order = SENTINEL + 1
    while len(priority_queue) > 1:
        zero = heapq.heappop(priority_queue)
        one = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(None, zero.frequency + one.frequency, order=next_order)
        merged_node.zero = zero
        merged_node.one = one
        next_order += 1
        heapq.heappush(priority_queue, merged_node)

    return priority_queue[0] # root of the tree, a lone leaf for a one-entry table


def generate_huffman_codes(root): # root: root of the Huffman tree
    codes = {}
    def generate_codes_helper(node, current_code):
        if node is None:
            return

        # Leaf node -> assign code
        if node.is_leaf():
            codes[node.symbol] = current_code
            return

        generate_codes_helper(node.zero, current_code + '0')
        generate_codes_helper(node.one, current_code + '1')

    generate_codes_helper(root, '')
    return codes


def encode_stream(source: BinaryIO, code_map: Dict[int, str], writer: BitWriter) -> int:
    """
    Write the code of every byte in source, then the code of SENTINEL
    Returns the number of payload bits written
    """
    start = writer.bits_written

    def emit(symbol):
        code = code_map.get(symbol)
        if code is None:
            raise ValueError(f"symbol {symbol} has no code in the code table")
        for ch in code:
            writer.write_bit(ch == '1')

    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        for byte in chunk:
            emit(byte)
    emit(SENTINEL)

    payload_bits = writer.bits_written - start
    logger.debug("encoded payload: %d bits", payload_bits)
    return payload_bits


def decode_stream(reader: BitReader, root: HuffmanNode, sink: BinaryIO) -> int:
    """
    Walk the tree bit by bit until the SENTINEL leaf is reached
    Returns the number of bytes written to sink
    """
    if root is None:
        raise ValueError("cannot decode without a Huffman tree")

    if root.is_leaf():
        # a lone leaf has an empty code: nothing to read
        if root.symbol != SENTINEL:
            raise ValueError(f"single-leaf tree holds symbol {root.symbol}, not the end-of-data marker")
        return 0

    decoded = bytearray()
    written = 0
    node = root
    while True:
        node = node.one if reader.read_bit() else node.zero
        if node is None:
            raise ValueError("Huffman tree has an internal node with a missing child")

        # Leaf
        if node.is_leaf():
            if node.symbol == SENTINEL:
                break
            decoded.append(node.symbol)
            node = root
            if len(decoded) >= CHUNK_SIZE:
                sink.write(bytes(decoded))
                written += len(decoded)
                decoded.clear()

    if decoded:
        sink.write(bytes(decoded))
        written += len(decoded)
    logger.debug("decoded payload: %d bytes from %d bits", written, reader.bits_read)
    return written
