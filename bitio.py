from typing import BinaryIO, Optional, Union

from bitarray import bitarray
from bitarray.util import ba2int, int2ba

MAX_BITS = 32 # widest single read/write


def _check_width(n: int) -> None:
    if not 1 <= n <= MAX_BITS:
        raise ValueError(f"bit width must be in [1, {MAX_BITS}], got {n}")


class BitInputStream:
    """
    Sequential MSB-first bit reader over a byte buffer

    The whole source is loaded into a bitarray up front, which is what makes
    reset() possible for file objects that are not seekable
    """

    def __init__(self, source: Union[bytes, bytearray, BinaryIO]):
        if isinstance(source, (bytes, bytearray)):
            raw = bytes(source)
        else:
            raw = source.read()
        self.bits = bitarray(endian="big")
        self.bits.frombytes(raw)
        self.pos = 0
        self.bits_read = 0

    def read_bits(self, n: int) -> int:
        """
        Read n bits as an unsigned int, or -1 when fewer than n bits remain
        """
        _check_width(n)
        if self.pos + n > len(self.bits):
            return -1
        val = ba2int(self.bits[self.pos:self.pos + n])
        self.pos += n
        self.bits_read += n
        return val

    def reset(self) -> None:
        self.pos = 0

    def close(self) -> None:
        self.pos = len(self.bits)


class BitOutputStream:
    """
    MSB-first bit writer; close() zero-pads the last partial byte
    """

    def __init__(self, sink: Optional[BinaryIO] = None):
        self.sink = sink
        self.bits = bitarray(endian="big")
        self.bits_written = 0
        self.closed = False

    def write_bits(self, n: int, value: int) -> None:
        _check_width(n)
        if value < 0:
            raise ValueError(f"cannot write negative value {value}")
        if self.closed:
            raise ValueError("write to closed BitOutputStream")
        self.bits.extend(int2ba(value & ((1 << n) - 1), length=n, endian="big"))
        self.bits_written += n

    def close(self) -> None:
        if self.closed:
            return
        self.bits.fill() # pad with zeros up to a byte boundary
        if self.sink is not None:
            self.sink.write(self.bits.tobytes())
            self.sink.flush()
        self.closed = True

    def getvalue(self) -> bytes:
        padded = self.bits.copy()
        padded.fill()
        return padded.tobytes()
