import heapq
from itertools import count
from typing import List, Optional

from bitio import BitInputStream, BitOutputStream

BITS_PER_WORD = 8
BITS_PER_INT = 32
ALPH_SIZE = 1 << BITS_PER_WORD
PSEUDO_EOF = ALPH_SIZE # one past the last byte value
HUFF_NUMBER = 0xFACE8200
HUFF_TREE = HUFF_NUMBER | 1 # format tag for tree-header framing

DEBUG_HIGH = 4
DEBUG_LOW = 1


class HuffException(ValueError):
    pass

class MalformedHeaderError(HuffException):
    pass

class TruncatedStreamError(HuffException):
    pass


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, weight, left=None, right=None):
        self.symbol = symbol    # 0..256, or None for internal nodes
        self.weight = weight
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode({self.symbol}, {self.weight})"
        return f"HuffmanNode(None, {self.weight}, {self.left!r}, {self.right!r})"


def read_for_counts(bit_in: BitInputStream) -> List[int]:
    counts = [0] * (ALPH_SIZE + 1)
    counts[PSEUDO_EOF] = 1
    while True:
        val = bit_in.read_bits(BITS_PER_WORD)
        if val == -1:
            break
        counts[val] += 1
    return counts


def make_tree_from_counts(counts: List[int]) -> HuffmanNode:
    """
    Build the Huffman tree for a 257-entry count table

    Ties on weight are broken by creation order, so equal tables always give
    the same tree. When only one symbol has a nonzero count a zero-weight
    placeholder leaf is added so the root is always internal and every code
    is at least one bit long.
    """
    seq = count()
    heap = [(freq, next(seq), HuffmanNode(symbol, freq)) for symbol, freq in enumerate(counts) if freq > 0]

    if len(heap) < 2:
        present = {node.symbol for _, _, node in heap}
        filler = next(s for s in range(ALPH_SIZE + 1) if s not in present)
        heap.append((0, next(seq), HuffmanNode(filler, 0)))

    heapq.heapify(heap)
    while len(heap) > 1:
        w1, _, left = heapq.heappop(heap)
        w2, _, right = heapq.heappop(heap)
        heapq.heappush(heap, (w1 + w2, next(seq), HuffmanNode(None, w1 + w2, left, right)))

    return heap[0][2]


def make_codings_from_tree(root: HuffmanNode) -> List[Optional[str]]:
    codings: List[Optional[str]] = [None] * (ALPH_SIZE + 1)

    def walk(node, path):
        if node.is_leaf():
            codings[node.symbol] = path
            return
        walk(node.left, path + '0')
        walk(node.right, path + '1')

    walk(root, '')
    return codings


def write_header(root: HuffmanNode, bit_out: BitOutputStream) -> None:
    # pre-order: 0 for internal, 1 + 9-bit symbol for a leaf
    if root.is_leaf():
        bit_out.write_bits(1, 1)
        bit_out.write_bits(BITS_PER_WORD + 1, root.symbol)
        return
    bit_out.write_bits(1, 0)
    write_header(root.left, bit_out)
    write_header(root.right, bit_out)


def read_tree_header(bit_in: BitInputStream, depth: int = 0) -> HuffmanNode:
    if depth > ALPH_SIZE: # 257 leaves cannot nest deeper than this
        raise MalformedHeaderError(f"tree header nests deeper than {ALPH_SIZE} levels")
    bit = bit_in.read_bits(1)
    if bit == -1:
        raise TruncatedStreamError("could not read header bit, stream ended inside tree header")
    if bit == 0:
        left = read_tree_header(bit_in, depth + 1)
        right = read_tree_header(bit_in, depth + 1)
        return HuffmanNode(None, 0, left, right)

    symbol = bit_in.read_bits(BITS_PER_WORD + 1)
    if symbol == -1:
        raise TruncatedStreamError("could not read leaf symbol, stream ended inside tree header")
    if symbol > PSEUDO_EOF:
        raise MalformedHeaderError(f"leaf symbol {symbol} is outside the alphabet")
    return HuffmanNode(symbol, 0)


def write_code(code: str, bit_out: BitOutputStream) -> None:
    # skewed counts can give codes longer than one write_bits call allows
    for start in range(0, len(code), BITS_PER_INT):
        chunk = code[start:start + BITS_PER_INT]
        bit_out.write_bits(len(chunk), int(chunk, 2))


def write_compressed_bits(codings: List[Optional[str]], bit_in: BitInputStream, bit_out: BitOutputStream) -> None:
    while True:
        val = bit_in.read_bits(BITS_PER_WORD)
        if val == -1:
            break
        write_code(codings[val], bit_out)
    write_code(codings[PSEUDO_EOF], bit_out)


def read_compressed_bits(root: HuffmanNode, bit_in: BitInputStream, bit_out: BitOutputStream) -> None:
    """
    Walk root-to-leaf paths, writing each leaf's byte, until PSEUDO_EOF
    """
    current = root
    while True:
        bit = bit_in.read_bits(1)
        if bit == -1:
            raise TruncatedStreamError("bad input, stream ended before PSEUDO_EOF")
        current = current.right if bit == 1 else current.left

        if current.is_leaf():
            if current.symbol == PSEUDO_EOF:
                break
            bit_out.write_bits(BITS_PER_WORD, current.symbol)
            current = root


class HuffProcessor:
    """
    Compresses and decompresses with a Huffman tree stored as the header

    Container layout: 32-bit HUFF_TREE tag, pre-order tree header, coded body
    ending in the PSEUDO_EOF code, zero padding to the byte boundary.
    """

    def __init__(self, debug: int = 0):
        self.debug = debug

    def compress(self, bit_in: BitInputStream, bit_out: BitOutputStream) -> None:
        counts = read_for_counts(bit_in)
        root = make_tree_from_counts(counts)
        codings = make_codings_from_tree(root)

        bit_out.write_bits(BITS_PER_INT, HUFF_TREE)
        write_header(root, bit_out)
        header_end = bit_out.bits_written

        if self.debug >= DEBUG_HIGH:
            leaves = sum(1 for c in codings if c is not None)
            print(f"tree built with {leaves} leaves, header is {header_end - BITS_PER_INT} bits")
            for symbol, code in enumerate(codings):
                if code is not None:
                    print(f"  {symbol:3d}  count={counts[symbol]:<8d} code={code}")

        bit_in.reset()
        write_compressed_bits(codings, bit_in, bit_out)

        if self.debug >= DEBUG_LOW:
            print(f"compress: read {bit_in.bits_read} bits, wrote {bit_out.bits_written} bits "
                  f"({bit_out.bits_written - header_end} body bits)")
        bit_out.close()

    def decompress(self, bit_in: BitInputStream, bit_out: BitOutputStream) -> None:
        bits = bit_in.read_bits(BITS_PER_INT)
        if bits == -1:
            raise TruncatedStreamError("stream too short to hold the format tag")
        if bits != HUFF_TREE:
            raise MalformedHeaderError(f"illegal header starts with {bits:#010x}")

        root = read_tree_header(bit_in)
        if root.is_leaf():
            raise MalformedHeaderError("tree header holds a single leaf, root must be internal")
        if self.debug >= DEBUG_HIGH:
            print(f"tree header read, {bit_in.bits_read - BITS_PER_INT} bits")

        read_compressed_bits(root, bit_in, bit_out)

        if self.debug >= DEBUG_LOW:
            print(f"decompress: read {bit_in.bits_read} bits, wrote {bit_out.bits_written} bits")
        bit_out.close()


def compress_bytes(data: bytes, debug: int = 0) -> bytes:
    bit_out = BitOutputStream()
    HuffProcessor(debug).compress(BitInputStream(data), bit_out)
    return bit_out.getvalue()

def decompress_bytes(data: bytes, debug: int = 0) -> bytes:
    bit_out = BitOutputStream()
    HuffProcessor(debug).decompress(BitInputStream(data), bit_out)
    return bit_out.getvalue()


def compress_file(input_path, output_path, debug: int = 0) -> None:
    with open(input_path, "rb") as fin, open(output_path, "wb") as fout:
        HuffProcessor(debug).compress(BitInputStream(fin), BitOutputStream(fout))

def decompress_file(input_path, output_path, debug: int = 0) -> None:
    with open(input_path, "rb") as fin, open(output_path, "wb") as fout:
        HuffProcessor(debug).decompress(BitInputStream(fin), BitOutputStream(fout))
