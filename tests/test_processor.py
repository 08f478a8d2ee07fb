import io
import logging
import random

import pytest

from bitops import BitReader, BitWriter
from errors import FormatError, HuffError, TruncatedPayloadError
from huffman import HUFF_TREE, PSEUDO_EOF, HuffmanNode, write_tree
from processor import (
    DebugLevel,
    compress,
    compress_bytes,
    decompress,
    decompress_bytes,
)

MAGIC_BYTES = HUFF_TREE.to_bytes(4, "big")


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"a",
        b"\x00",
        b"\xff" * 3,
        b"abracadabra",
        bytes(range(256)),
        bytes(range(256)) * 3 + b"\x00" * 500,
    ],
)
def test_roundtrip(data):
    assert decompress_bytes(compress_bytes(data)) == data


def test_roundtrip_text(sample_text):
    comp = compress_bytes(sample_text)
    assert len(comp) < len(sample_text)
    assert decompress_bytes(comp) == sample_text


def test_roundtrip_random_bytes():
    rng = random.Random(1234)
    data = bytes(rng.randrange(256) for _ in range(20000))
    assert decompress_bytes(compress_bytes(data)) == data


def test_compressed_stream_starts_with_magic():
    assert compress_bytes(b"hello").startswith(MAGIC_BYTES)
    assert MAGIC_BYTES == b"\xfa\xce\x82\x01"


def test_empty_input_stream_layout():
    writer = BitWriter()
    bits = compress(BitReader(b""), writer)
    # magic, tree (0, 256) = 21 bits, one bit for PSEUDO_EOF
    assert bits == 32 + 21 + 1
    assert writer.getvalue() == MAGIC_BYTES + bytes([0x40, 0x18, 0x04])
    assert decompress_bytes(writer.getvalue()) == b""


def test_single_symbol_input_compresses():
    data = b"\x41" * 1000
    comp = compress_bytes(data)
    # magic + two-leaf tree + one bit per byte + one bit for PSEUDO_EOF
    assert len(comp) == (32 + 21 + 1000 + 1 + 7) // 8
    assert len(comp) * 8 < len(data) * 8
    assert decompress_bytes(comp) == data


def test_compress_is_deterministic(sample_text):
    assert compress_bytes(sample_text) == compress_bytes(sample_text)


def test_debug_level_does_not_change_output(sample_text, caplog):
    caplog.set_level(logging.DEBUG, logger="processor")
    plain = compress_bytes(sample_text)
    assert not caplog.records
    verbose = compress_bytes(sample_text, DebugLevel.HIGH)
    assert verbose == plain
    assert any("distinct symbols" in r.getMessage() for r in caplog.records)
    assert decompress_bytes(verbose, DebugLevel.LOW) == sample_text


def test_compress_closes_output():
    sink = io.BytesIO()
    compress(BitReader(b"xyz"), BitWriter(sink))
    assert sink.closed


def test_decompress_bad_magic_raises_format_error():
    comp = bytearray(compress_bytes(b"hello"))
    comp[0] ^= 0xFF
    with pytest.raises(FormatError):
        decompress_bytes(bytes(comp))


@pytest.mark.parametrize("data", [b"", b"\xfa\xce", b"\x00\x00\x00\x00" * 4])
def test_decompress_short_or_zero_stream_raises_format_error(data):
    with pytest.raises(FormatError):
        decompress_bytes(data)


def test_decompress_truncated_header_raises_format_error():
    with pytest.raises(FormatError):
        decompress_bytes(MAGIC_BYTES)
    comp = compress_bytes(b"the header of this one is long")
    with pytest.raises(FormatError):
        decompress_bytes(comp[:8])


def test_decompress_single_leaf_header_raises_format_error():
    writer = BitWriter()
    writer.write_bits(HUFF_TREE, 32)
    write_tree(HuffmanNode(symbol=PSEUDO_EOF), writer)
    writer.close()
    with pytest.raises(FormatError):
        decompress_bytes(writer.getvalue())


def test_decompress_missing_payload_raises_truncated():
    root = HuffmanNode(
        left=HuffmanNode(symbol=PSEUDO_EOF),
        right=HuffmanNode(left=HuffmanNode(symbol=ord("a")),
                          right=HuffmanNode(symbol=ord("b"))),
    )
    writer = BitWriter()
    writer.write_bits(HUFF_TREE, 32)
    write_tree(root, writer)
    writer.close()
    # 32-bit tree header leaves no padding bits to decode
    assert writer.bits_written == 64
    with pytest.raises(TruncatedPayloadError):
        decompress_bytes(writer.getvalue())


def test_decompress_without_pseudo_eof_raises_truncated():
    root = HuffmanNode(left=HuffmanNode(symbol=ord("a")),
                       right=HuffmanNode(symbol=ord("b")))
    writer = BitWriter()
    writer.write_bits(HUFF_TREE, 32)
    write_tree(root, writer)
    writer.write_bits(0b0110, 4)
    writer.close()
    with pytest.raises(TruncatedPayloadError):
        decompress_bytes(writer.getvalue())


def test_decompress_leaves_output_open_on_error():
    sink = io.BytesIO()
    comp = compress_bytes(b"abcabcabc")
    with pytest.raises(HuffError):
        decompress(BitReader(comp[:-2]), BitWriter(sink))
    assert not sink.closed


def test_errors_are_value_errors():
    assert issubclass(FormatError, ValueError)
    assert issubclass(TruncatedPayloadError, ValueError)
    assert not issubclass(FormatError, TruncatedPayloadError)


def test_decompress_returns_bits_written():
    writer = BitWriter()
    bits = decompress(BitReader(compress_bytes(b"four")), writer)
    assert bits == 32
    assert writer.getvalue() == b"four"
