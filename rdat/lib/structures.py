"""
Interfaces and classes to read structured data.
"""
from __future__ import annotations

import abc
import codecs
import enum
import inspect
import io
import re
import sys

from typing import (
    TYPE_CHECKING,
    Generic,
    TypeVar,
    Union,
    cast,
    get_origin,
    overload,
)

if TYPE_CHECKING:
    from typing import Generator, Self

    from rdat.lib.types import JSON, buf

    T = TypeVar('T', bound=Union[bytearray, bytes, memoryview])
else:
    T = TypeVar('T')


def buffer_offset(haystack: buf, needle: bytes, start: int = 0, end: int | None = None) -> int:
    """
    Performs a substring search of `needle` in `haystack` without copying the haystack, which may
    be a `memoryview`. Returns the offset of the first match or `-1`.
    """
    if not needle:
        return 0
    if end is None:
        end = len(haystack)
    if isinstance(haystack, (bytes, bytearray)):
        return haystack.find(needle, start, end)
    if match := re.compile(re.escape(needle)).search(haystack, start, end):
        return match.start()
    return -1


class EOF(EOFError):
    """
    While reading from a `rdat.lib.structures.MemoryFile`, less bytes were available than
    requested. The exception contains the data from the incomplete read.
    """
    def __init__(self, size: int, rest: buf = B''):
        super().__init__(F'Unexpected end of buffer; attempted to read {size} bytes, but got only {len(rest)}.')
        self.rest = rest
        self.size = size

    def __bytes__(self):
        return bytes(self.rest)


class MemoryFile(Generic[T]):
    """
    A thin read-only wrapper around byte sequences which gives it the features of a file-like
    object. Reads never copy more than the requested slice of the underlying buffer.
    """
    _data: T
    _cursor: int

    def __init__(self, data: T | MemoryFile[T]):
        if isinstance(data, MemoryFile):
            self._data = data._data
            self._cursor = data._cursor
        elif isinstance(data, (bytearray, bytes, memoryview)):
            self._data = data
            self._cursor = 0
        else:
            raise TypeError(F'Invalid input: {data!r}.')

    def __len__(self):
        return len(self._data)

    @property
    def remaining_bytes(self) -> int:
        return len(self._data) - self.tell()

    def read(self, size: int | None = None) -> T:
        beginning = self._cursor
        if size is None or size < 0:
            end = len(self._data)
        else:
            end = min(self._cursor + size, len(self._data))
        self._cursor = end
        return self._data[beginning:end]

    def tell(self) -> int:
        return self._cursor

    def skip(self, n: int):
        self._cursor += n

    def seekset(self, offset: int) -> int:
        if offset < 0:
            return self.seek(offset, io.SEEK_END)
        else:
            return self.seek(offset, io.SEEK_SET)

    def getvalue(self) -> T:
        return self._data

    def seek(self, offset: int, whence=io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            if offset < 0:
                raise ValueError('no negative offsets allowed for SEEK_SET.')
            self._cursor = offset
        elif whence == io.SEEK_CUR:
            self._cursor += offset
        elif whence == io.SEEK_END:
            self._cursor = len(self._data) + offset
        self._cursor = max(self._cursor, 0)
        self._cursor = min(self._cursor, len(self._data))
        return self._cursor


class StructReader(MemoryFile[T]):
    """
    An extension of a `rdat.lib.structures.MemoryFile` which provides methods to read
    structured data. All multi-byte integers are little endian.
    """
    def read_exactly(self, size: int | None = None) -> T:
        """
        Read bytes from the underlying stream. Raises an exception of type `rdat.lib.structures.EOF`
        when fewer data is available in the stream than requested via the `size` parameter. The
        remaining data can be extracted from the exception.
        """
        data = self.read(size)
        if size and len(data) < size:
            raise EOF(size, data)
        return data

    def read_integer(self, size: int, signed: bool = False) -> int:
        """
        Read an integer of the given size (in bits) from the stream.
        """
        nbytes, rest = divmod(size, 8)
        if rest > 0:
            raise ValueError(
                F'A {self.__class__.__name__} cannot read {size} bit{"s" * (size > 1)}, only multiples of 8 are possible.')
        data = self.read(nbytes)
        if len(data) < nbytes:
            raise EOF(nbytes, data)
        return int.from_bytes(data, 'little', signed=signed)

    def u32(self) -> int:
        return self.read_integer(32)

    def read_terminated_array(self, terminator: bytes, alignment: int = 1) -> T:
        buf = self.getvalue()
        pos = self.tell()
        end = pos - 1
        n = len(terminator)
        while True:
            end = buffer_offset(buf, terminator, end + 1)
            if end < 0 or not (end - pos) % alignment:
                break
        if end >= pos:
            result = self.read_exactly(end - pos)
            self.skip(n)
            return result
        raise EOF(len(buf) - pos + n)

    @overload
    def read_c_string(self) -> T:
        ...

    @overload
    def read_c_string(self, encoding: str) -> str:
        ...

    def read_c_string(self, encoding=None) -> str | T:
        data = self.read_terminated_array(B'\0')
        if encoding is not None:
            data = codecs.decode(data, encoding)
        return data


class StructMeta(abc.ABCMeta):
    """
    A metaclass to facilitate the behavior outlined for `rdat.lib.structures.Struct`.
    """
    def __new__(mcls, name, bases, namespace: dict, interface: type[StructReader] | None = None):
        if interface is None:
            if init := namespace.get('__init__'):
                args = iter(inspect.signature(init).parameters.values())
                next(args)
                interface = next(args).annotation
                if isinstance(interface, str):
                    try:
                        module = sys.modules[namespace['__module__']]
                        interface = eval(interface, module.__dict__)
                    except Exception:
                        interface = None
                if not isinstance(interface, type):
                    interface = get_origin(interface)
                if not isinstance(interface, type) or not issubclass(interface, StructReader):
                    raise RuntimeError
            else:
                interface = StructReader

        def parse(cls, reader: T | StructReader[T], *args, **kwargs):
            if not isinstance(reader, interface):
                reader = interface(reader)
            return cls(reader, *args, **kwargs)

        namespace.update(Parse=classmethod(parse))
        return super().__new__(mcls, name, bases, namespace)


class Struct(Generic[T], metaclass=StructMeta):
    """
    A class to parse structured data. A `rdat.lib.structures.Struct` class can be instantiated
    as follows:

        foo = Struct.Parse(data, bar=29)

    The initialization routine of the structure will be called with a single argument `reader`. If
    the object `data` is already a `rdat.lib.structures.StructReader`, then it will be passed
    as `reader`. Otherwise, the argument will be wrapped in a `rdat.lib.structures.StructReader`.
    Additional arguments to the struct are passed through.
    """
    @classmethod
    def Parse(cls, reader: T | StructReader[T], *args, **kwargs) -> Self:
        ...

    def __init__(self, reader: StructReader[T], *args, **kwargs):
        pass


def struct_to_json(o, codec: str | None = None) -> JSON:
    """
    Attempt to convert a `rdat.lib.structures.Struct` to a JSON representation.
    """
    if o is None:
        return o
    if isinstance(o, Struct):
        return {k: struct_to_json(v) for k, v in o.__dict__.items() if not k.startswith('_')}
    if isinstance(o, dict):
        return {k: struct_to_json(v, codec) for k, v in o.items()}
    if isinstance(o, (list, tuple)):
        return [struct_to_json(v, codec) for v in o]
    if isinstance(o, enum.IntFlag):
        return [option.name for option in o.__class__ if option.name and o & option == option]
    if isinstance(o, enum.IntEnum):
        return o.name
    if codec is not None and isinstance(o, (memoryview, bytes, bytearray)):
        return codecs.decode(o, codec)
    try:
        return o.__json__()
    except AttributeError:
        pass
    return cast('JSON', o)


class FlagAccessMixin:
    """
    This class can be mixed into an `enum.IntFlag` for some quality of life improvements. Firstly,
    you can now access flags as follows:

        class Flags(FlagAccessMixin, enum.IntFlag):
            IsBinary = 1
            IsCompressed = 2

        flag = Flags(3)

        if flag.IsCompressed:
            decompress()

    Furthermore, flag values can be enumerated:

        >>> list(flag)
        [IsBinary, IsCompressed]
        >>> flag
        IsBinary|IsCompressed

    And finally, as visible from the above output, flag values are represented by their name by
    default.
    """
    def __getattribute__(self, name: str):
        if not isinstance(self, enum.IntFlag):
            raise RuntimeError
        if not name.startswith('_'):
            try:
                flag = self.__class__[name]
            except KeyError:
                pass
            else:
                return flag in self
        return super().__getattribute__(name)

    def __iter__(self) -> Generator[Self]:
        if not isinstance(self, enum.IntFlag):
            raise RuntimeError
        for flag in self.__class__:
            if flag in self:
                yield flag

    def __repr__(self):
        if not isinstance(self, enum.IntFlag):
            raise RuntimeError
        if name := self.name:
            return name
        return super().__repr__()
