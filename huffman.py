import heapq
import itertools
from typing import Dict, List, Optional, Tuple, Union

from bitops import BitReader, BitWriter
from errors import FormatError

BITS_PER_WORD = 8  #: Width of an input symbol
BITS_PER_INT = 32  #: Width of the magic number
ALPH_SIZE = 1 << BITS_PER_WORD  #: Number of byte values
PSEUDO_EOF = ALPH_SIZE  #: Sentinel symbol terminating every payload
HUFF_NUMBER = 0xFACE8200  #: Base magic number
HUFF_TREE = HUFF_NUMBER | 1  #: Magic number of the tree-header format

_sequence = itertools.count()


class HuffmanNode:
    """Node for a binary Huffman tree.

    :ivar symbol: Byte value or ``PSEUDO_EOF`` stored at a leaf; ``None`` for internal nodes.
    :type symbol: int | None
    :ivar freq: Weight of the subtree rooted at this node (only meaningful
                during construction).
    :type freq: int
    :ivar left: Left child node.
    :type left: HuffmanNode | None
    :ivar right: Right child node.
    :type right: HuffmanNode | None
    :ivar seq: Creation order, used to break ties between equal weights.
    :type seq: int
    """

    def __init__(self, symbol=None, freq=0, left=None, right=None):
        """Create a Huffman node.

        :param symbol: Symbol value for leaf nodes; ``None`` for internal nodes.
        :type symbol: int | None
        :param int freq: Weight associated with this node.
        :param left: Left child node, if any.
        :type left: HuffmanNode|None
        :param right: Right child node, if any.
        :type right: HuffmanNode|None
        :returns: None
        :rtype: None
        """
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right
        self.seq = next(_sequence)

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __lt__(self, other):
        """Order nodes by weight, then by creation order.

        :param other: Another node to compare with.
        :type other: HuffmanNode
        :returns: ``True`` if this node should be popped from a heap first.
        :rtype: bool
        """
        return (self.freq, self.seq) < (other.freq, other.seq)

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq})"


def count_frequencies(reader: BitReader) -> List[int]:
    """Count occurrences of every 8-bit word in ``reader``.

    The reader is consumed; rewind it before reading the input again.

    :param reader: Bit reader positioned at the start of the input.
    :type reader: BitReader
    :returns: Weight table of ``ALPH_SIZE + 1`` entries; the
              ``PSEUDO_EOF`` entry is always 1.
    :rtype: List[int]
    """
    counts = [0] * (ALPH_SIZE + 1)
    counts[PSEUDO_EOF] = 1
    while True:
        value = reader.read_bits(BITS_PER_WORD)
        if value is None:
            break
        counts[value] += 1
    return counts


def build_tree(counts: List[int]) -> HuffmanNode:
    """Build a Huffman tree from a weight table.

    Leaves are created in ascending symbol order. The two lightest nodes
    are merged repeatedly, the first one popped becoming the left child;
    equal weights are popped in creation order.

    A table with a single non-zero weight (empty input: only
    ``PSEUDO_EOF``) gets a zero-weight filler leaf so the root always has
    two children and every code is at least one bit long.

    :param counts: Weight per symbol, indexed by symbol value.
    :type counts: List[int]
    :returns: Root of the tree.
    :rtype: HuffmanNode
    :raises ValueError: If every weight is zero.
    """
    heap = [
        HuffmanNode(symbol=sym, freq=freq)
        for sym, freq in enumerate(counts)
        if freq > 0
    ]
    if not heap:
        raise ValueError("Cannot build a Huffman tree from an empty weight table")
    if len(heap) == 1:
        filler = 0 if heap[0].symbol != 0 else 1
        heap.append(HuffmanNode(symbol=filler, freq=0))
    heapq.heapify(heap)

    while len(heap) > 1:
        left = heapq.heappop(heap)
        right = heapq.heappop(heap)
        merged = HuffmanNode(freq=left.freq + right.freq, left=left, right=right)
        heapq.heappush(heap, merged)

    return heap[0]


def make_codes(root: HuffmanNode) -> Dict[int, Tuple[int, int]]:
    """Derive the code of every leaf from its root-to-leaf path.

    Descending left appends a 0 bit, descending right appends a 1 bit.

    :param root: Root of a tree with at least two leaves.
    :type root: HuffmanNode
    :returns: Mapping from symbol to ``(code, length)``, ``code`` MSB first.
    :rtype: Dict[int, Tuple[int, int]]
    """
    codes: Dict[int, Tuple[int, int]] = {}
    _collect_codes(root, 0, 0, codes)
    return codes


def _collect_codes(node: HuffmanNode, code: int, depth: int,
                   codes: Dict[int, Tuple[int, int]]):
    if node.is_leaf:
        codes[node.symbol] = (code, depth)
        return
    _collect_codes(node.left, code << 1, depth + 1, codes)
    _collect_codes(node.right, (code << 1) | 1, depth + 1, codes)


def write_tree(node: HuffmanNode, writer: BitWriter):
    """Serialize a tree in pre-order.

    An internal node is written as a 0 bit followed by its left and right
    subtrees; a leaf as a 1 bit followed by its 9-bit symbol.

    :param node: Root of the (sub)tree to write.
    :type node: HuffmanNode
    :param writer: Destination bit writer.
    :type writer: BitWriter
    :returns: None
    :rtype: None
    """
    if node.is_leaf:
        writer.write_bits(1, 1)
        writer.write_bits(node.symbol, BITS_PER_WORD + 1)
    else:
        writer.write_bits(0, 1)
        write_tree(node.left, writer)
        write_tree(node.right, writer)


def read_tree(reader: BitReader, depth: int = 0) -> HuffmanNode:
    """Rebuild a tree serialized by :func:`write_tree`.

    Weights are not stored in the header, so every node has weight 0.

    :param reader: Bit reader positioned at the start of the header.
    :type reader: BitReader
    :param depth: Depth of the node being read.
    :type depth: int
    :returns: Root of the rebuilt tree.
    :rtype: HuffmanNode
    :raises FormatError: If the data ends inside the header, a leaf holds a
    value outside the alphabet or the tree is deeper than the alphabet allows.
    """
    if depth > ALPH_SIZE:
        raise FormatError("Tree header too deep")
    bit = reader.read_bits(1)
    if bit is None:
        raise FormatError("Truncated tree header")
    if bit == 0:
        left = read_tree(reader, depth + 1)
        right = read_tree(reader, depth + 1)
        return HuffmanNode(left=left, right=right)
    symbol = reader.read_bits(BITS_PER_WORD + 1)
    if symbol is None:
        raise FormatError("Truncated leaf in tree header")
    if symbol > PSEUDO_EOF:
        raise FormatError(f"Invalid symbol in tree header: {symbol}")
    return HuffmanNode(symbol=symbol)


Shape = Union[int, Tuple["Shape", "Shape"]]


def tree_shape(node: Optional[HuffmanNode]) -> Optional[Shape]:
    """Describe a tree as nested tuples, ignoring weights.

    >>> tree_shape(HuffmanNode(left=HuffmanNode(symbol=65), right=HuffmanNode(symbol=256)))
    (65, 256)
    """
    if node is None:
        return None
    if node.is_leaf:
        return node.symbol
    return tree_shape(node.left), tree_shape(node.right)


def header_bits(root: HuffmanNode) -> int:
    """Number of bits :func:`write_tree` emits for ``root``."""
    if root.is_leaf:
        return 1 + BITS_PER_WORD + 1
    return 1 + header_bits(root.left) + header_bits(root.right)
