class HuffError(Exception):
    """Base class for errors raised while decoding a Huffman stream."""


class FormatError(HuffError, ValueError):
    """The stream is not a Huffman stream: bad magic number or a
    malformed/truncated tree header."""


class TruncatedPayloadError(HuffError, ValueError):
    """The payload ended before the pseudo-EOF code was read."""
