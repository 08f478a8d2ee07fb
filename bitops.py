import io
from typing import BinaryIO, Optional, Union

CHUNK_SIZE = 8192  #: Bytes moved between the bit buffers and the underlying file


class BitWriter:
    """Bit-packing writer over a binary file object.

    Accumulates individual bits into bytes, MSB first, and hands full bytes
    to ``sink`` in chunks. :meth:`close` pads the last byte with zero bits.

    :ivar sink: Binary file object receiving the packed bytes.
    :type sink: BinaryIO
    :ivar buffer: Fully packed bytes not yet written to ``sink``.
    :type buffer: bytearray
    :ivar bit_buffer: 8-bit scratch register for accumulating pending bits.
    :type bit_buffer: int
    :ivar bit_count: Number of valid bits currently stored in ``bit_buffer`` (0-7).
    :type bit_count: int
    :ivar bits_written: Total number of bits accepted by :meth:`write_bits`.
    :type bits_written: int
    """

    def __init__(self, sink: Optional[BinaryIO] = None, close_sink: bool = True):
        """Initialize an empty bit writer.

        :param sink: Destination file object. An in-memory buffer is
                     created when omitted.
        :type sink: Optional[BinaryIO]
        :param close_sink: Whether :meth:`close` also closes ``sink``.
        :type close_sink: bool
        :returns: None
        :rtype: None
        """
        if sink is None:
            sink = io.BytesIO()
            close_sink = False
        self.sink = sink
        self.close_sink = close_sink
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0
        self.bits_written = 0
        self.closed = False

    def write_bits(self, value: int, nbits: int):
        """Write the lowest ``nbits`` of ``value`` to the stream, MSB first.

        :param value: Integer whose bits will be written, ``0 <= value < 2**nbits``.
        :type value: int
        :param nbits: Number of bits from ``value`` to write (0-32).
        :type nbits: int
        :returns: None
        :rtype: None
        :raises ValueError: If the writer is closed, ``nbits`` is out of
        range or ``value`` does not fit into ``nbits`` bits.
        """
        if self.closed:
            raise ValueError("Write to a closed BitWriter")
        if not 0 <= nbits <= 32:
            raise ValueError(f"Bit count out of range: {nbits}")
        if value < 0 or value >> nbits:
            raise ValueError(f"Value {value} does not fit in {nbits} bits")
        for i in range(nbits - 1, -1, -1):
            self.bit_buffer = (self.bit_buffer << 1) | ((value >> i) & 1)
            self.bit_count += 1
            if self.bit_count == 8:
                self.buffer.append(self.bit_buffer)
                self.bit_buffer = 0
                self.bit_count = 0
        self.bits_written += nbits
        if len(self.buffer) >= CHUNK_SIZE:
            self.sink.write(bytes(self.buffer))
            self.buffer.clear()

    def flush(self):
        """Pad the pending partial byte with zeros and write everything out.

        :returns: None
        :rtype: None
        """
        if self.bit_count > 0:
            self.bit_buffer <<= (8 - self.bit_count)
            self.buffer.append(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0
        if self.buffer:
            self.sink.write(bytes(self.buffer))
            self.buffer.clear()
        self.sink.flush()

    def close(self):
        """Flush remaining bits and release the sink.

        Calling ``close`` more than once has no effect.

        :returns: None
        :rtype: None
        """
        if self.closed:
            return
        self.flush()
        self.closed = True
        if self.close_sink:
            self.sink.close()

    def getvalue(self) -> bytes:
        """Return the bytes written to an in-memory sink so far.

        :returns: Contents of the underlying ``io.BytesIO``.
        :rtype: bytes
        :raises TypeError: If the sink is not an in-memory buffer.
        """
        if not isinstance(self.sink, io.BytesIO):
            raise TypeError("getvalue() needs an io.BytesIO sink")
        return self.sink.getvalue()


class BitReader:
    """Bit reader over bytes or a binary file object.

    Reads arbitrary bit lengths MSB first. Running out of data is reported
    out of band: :meth:`read_bits` returns ``None`` instead of a value.

    :ivar source: Binary file object to read from.
    :type source: BinaryIO
    :ivar start: Offset in ``source`` that :meth:`reset` returns to.
    :type start: int
    :ivar bit_buffer: Scratch register holding the current source byte.
    :type bit_buffer: int
    :ivar bit_count: Number of unread bits remaining in ``bit_buffer`` (0-8).
    :type bit_count: int
    :ivar bits_read: Total number of bits returned so far.
    :type bits_read: int
    """

    def __init__(self, source: Union[bytes, bytearray, BinaryIO]):
        """Create a bit reader for the given input ``source``.

        :param source: Data to read, either raw bytes or a seekable binary
                       file object positioned at the start of the input.
        :type source: Union[bytes, bytearray, BinaryIO]
        :returns: None
        :rtype: None
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self.source = source
        self.start = source.tell() if source.seekable() else 0
        self.chunk = b""
        self.pos = 0
        self.bit_buffer = 0
        self.bit_count = 0
        self.bits_read = 0

    def _next_byte(self) -> Optional[int]:
        if self.pos >= len(self.chunk):
            self.chunk = self.source.read(CHUNK_SIZE)
            self.pos = 0
            if not self.chunk:
                return None
        byte = self.chunk[self.pos]
        self.pos += 1
        return byte

    def read_bits(self, nbits: int) -> Optional[int]:
        """Read ``nbits`` bits from the stream and return them as an integer.

        :param nbits: Number of bits to read (1-32).
        :type nbits: int
        :returns: The integer composed of the next ``nbits`` bits, MSB first,
                  or ``None`` if the stream ends before ``nbits`` bits are read.
        :rtype: Optional[int]
        :raises ValueError: If ``nbits`` is out of range.
        """
        if not 1 <= nbits <= 32:
            raise ValueError(f"Bit count out of range: {nbits}")
        result = 0
        for _ in range(nbits):
            if self.bit_count == 0:
                byte = self._next_byte()
                if byte is None:
                    return None
                self.bit_buffer = byte
                self.bit_count = 8
            result = (result << 1) | ((self.bit_buffer >> (self.bit_count - 1)) & 1)
            self.bit_count -= 1
        self.bits_read += nbits
        return result

    def reset(self):
        """Rewind to the position the reader started at.

        :returns: None
        :rtype: None
        :raises io.UnsupportedOperation: If the source cannot seek.
        """
        self.source.seek(self.start)
        self.chunk = b""
        self.pos = 0
        self.bit_buffer = 0
        self.bit_count = 0
