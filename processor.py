import logging
from enum import IntEnum

from bitops import BitReader, BitWriter
from errors import FormatError, TruncatedPayloadError
from huffman import (
    BITS_PER_INT,
    BITS_PER_WORD,
    HUFF_TREE,
    PSEUDO_EOF,
    build_tree,
    count_frequencies,
    header_bits,
    make_codes,
    read_tree,
    write_tree,
)

logger = logging.getLogger(__name__)


class DebugLevel(IntEnum):
    """Amount of diagnostic logging done by :func:`compress` and
    :func:`decompress`. It never changes the compressed output."""

    OFF = 0
    LOW = 1
    HIGH = 4


def compress(reader: BitReader, writer: BitWriter,
             debug: DebugLevel = DebugLevel.OFF) -> int:
    """Compress everything ``reader`` holds into ``writer``.

    Output layout: 32-bit magic ``HUFF_TREE``, the pre-order tree header,
    the code of every input byte, the code of ``PSEUDO_EOF``, and zero
    padding to the next byte boundary. The reader is read twice and must
    support :meth:`BitReader.reset`. ``writer`` is closed on success.

    :param reader: Source of 8-bit words.
    :type reader: BitReader
    :param writer: Destination of the compressed stream.
    :type writer: BitWriter
    :param debug: Diagnostic verbosity.
    :type debug: DebugLevel
    :returns: Number of bits written, padding excluded.
    :rtype: int
    """
    counts = count_frequencies(reader)
    root = build_tree(counts)
    codes = make_codes(root)

    if debug >= DebugLevel.LOW:
        logger.info(
            "compress: %d input bytes, %d distinct symbols, header %d bits",
            sum(counts) - 1, len(codes), header_bits(root),
        )
    if debug >= DebugLevel.HIGH:
        for symbol in sorted(codes):
            code, length = codes[symbol]
            logger.debug(
                "symbol %3d weight %d code %s",
                symbol, counts[symbol], format(code, f"0{length}b"),
            )

    writer.write_bits(HUFF_TREE, BITS_PER_INT)
    write_tree(root, writer)

    reader.reset()
    while True:
        value = reader.read_bits(BITS_PER_WORD)
        if value is None:
            break
        code, length = codes[value]
        writer.write_bits(code, length)

    code, length = codes[PSEUDO_EOF]
    writer.write_bits(code, length)
    written = writer.bits_written
    writer.close()

    if debug >= DebugLevel.LOW:
        logger.info("compress: read %d bits, wrote %d bits",
                    reader.bits_read, written)
    return written


def decompress(reader: BitReader, writer: BitWriter,
               debug: DebugLevel = DebugLevel.OFF) -> int:
    """Decompress a stream produced by :func:`compress` into ``writer``.

    Bits are consumed one at a time while walking the tree from the root;
    reaching a byte leaf emits it and restarts at the root, reaching the
    ``PSEUDO_EOF`` leaf ends decoding. ``writer`` is closed on success
    only; on error the bytes already written are left for the caller to
    discard.

    :param reader: Source of the compressed stream.
    :type reader: BitReader
    :param writer: Destination of the original bytes.
    :type writer: BitWriter
    :param debug: Diagnostic verbosity.
    :type debug: DebugLevel
    :returns: Number of bits written.
    :rtype: int
    :raises FormatError: If the magic number is wrong or the tree header
    is malformed or truncated.
    :raises TruncatedPayloadError: If the data ends before ``PSEUDO_EOF``.
    """
    magic = reader.read_bits(BITS_PER_INT)
    if magic != HUFF_TREE:
        raise FormatError(
            "Invalid magic number: "
            + ("missing" if magic is None else f"{magic:#010x}")
        )

    root = read_tree(reader)
    if root.is_leaf:
        raise FormatError("Tree header holds a single leaf")
    if debug >= DebugLevel.LOW:
        logger.info("decompress: header read, %d bits consumed",
                    reader.bits_read)

    current = root
    while True:
        bit = reader.read_bits(1)
        if bit is None:
            raise TruncatedPayloadError("Bad input, no PSEUDO_EOF")
        current = current.right if bit else current.left
        if current.is_leaf:
            if current.symbol == PSEUDO_EOF:
                break
            writer.write_bits(current.symbol, BITS_PER_WORD)
            if debug >= DebugLevel.HIGH:
                logger.debug("decoded %d", current.symbol)
            current = root

    written = writer.bits_written
    writer.close()

    if debug >= DebugLevel.LOW:
        logger.info("decompress: read %d bits, wrote %d bits",
                    reader.bits_read, written)
    return written


def compress_bytes(data: bytes, debug: DebugLevel = DebugLevel.OFF) -> bytes:
    """Compress an in-memory byte string.

    :param data: Input bytes to compress.
    :type data: bytes
    :param debug: Diagnostic verbosity.
    :type debug: DebugLevel
    :returns: Compressed byte stream.
    :rtype: bytes
    """
    writer = BitWriter()
    compress(BitReader(data), writer, debug)
    return writer.getvalue()


def decompress_bytes(data: bytes, debug: DebugLevel = DebugLevel.OFF) -> bytes:
    """Decompress data produced by :func:`compress_bytes`.

    :param data: Compressed byte stream.
    :type data: bytes
    :param debug: Diagnostic verbosity.
    :type debug: DebugLevel
    :returns: Original uncompressed bytes.
    :rtype: bytes
    :raises FormatError: If the header is invalid.
    :raises TruncatedPayloadError: If the payload is cut short.
    """
    writer = BitWriter()
    decompress(BitReader(data), writer, debug)
    return writer.getvalue()
