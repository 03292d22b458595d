"""
Parser for the container of DXIL runtime data (RDAT). The container starts with a table count
and a sequence of table headers, each of which declares the type, size and offset of one table.
The offsets are relative to the start of the container:

    [count: u32] [count * (type: u32, size: u32, offset: u32)] [table data ...]

The tables are handed to the readers in `rdat.lib.dxil.tables`.
"""
from __future__ import annotations

from typing import Optional

from rdat.lib.dxil.constants import TABLE_HEADER_SIZE, RuntimeDataPartType
from rdat.lib.dxil.errors import RuntimeDataError, TruncatedContainer
from rdat.lib.dxil.tables import (
    FunctionTableReader,
    IndexTableReader,
    ResourceTableReader,
    RuntimeDataContext,
    StringTableReader,
)
from rdat.lib.enumeration import valueof
from rdat.lib.environment import logger
from rdat.lib.structures import EOF, Struct, StructReader
from rdat.lib.tools import exception_to_string
from rdat.lib.types import buf

_log = logger(__name__)


class RuntimeDataTableHeader(Struct):
    def __init__(self, reader: StructReader[memoryview]):
        self.table_type = valueof(RuntimeDataPartType, reader.u32())
        self.size = reader.u32()
        self.offset = reader.u32()

    @property
    def end(self):
        return self.offset + self.size

    def __repr__(self):
        return F'<{self.table_type!r} table at {self.offset:#x} of size {self.size:#x}>'


class DxilRuntimeData:
    """
    Decodes the table directory of an RDAT container and provides readers for its tables. When
    `data` is given, it is parsed immediately and any decode failure raises an exception derived
    from `rdat.lib.dxil.errors.RuntimeDataError`. Tables of an unknown type are ignored. The
    readers reference the input buffer, which must not be modified while they are in use.
    """
    headers: list[RuntimeDataTableHeader]
    context: RuntimeDataContext

    def __init__(self, data: Optional[buf] = None):
        self._reset()
        if data is not None:
            self.load(data)

    def _reset(self):
        strings = StringTableReader()
        indices = IndexTableReader()
        resources = ResourceTableReader(strings=strings)
        functions = FunctionTableReader(strings=strings, indices=indices, resources=resources)
        self.headers = []
        self.context = RuntimeDataContext(strings, indices, resources, functions)

    @property
    def table_count(self) -> int:
        return len(self.headers)

    @property
    def string_table(self) -> StringTableReader:
        return self.context.string_table

    @property
    def index_table(self) -> IndexTableReader:
        return self.context.index_table

    @property
    def resource_table(self) -> ResourceTableReader:
        return self.context.resource_table

    @property
    def function_table(self) -> FunctionTableReader:
        return self.context.function_table

    def load(self, data: buf):
        """
        Parse the given container; raises a `rdat.lib.dxil.errors.RuntimeDataError` on failure.
        """
        view = memoryview(data)
        if view.ndim != 1 or view.itemsize != 1:
            view = view.cast('B')
        reader = StructReader(view)
        try:
            count = reader.u32()
            if count * TABLE_HEADER_SIZE > reader.remaining_bytes:
                raise TruncatedContainer(
                    F'RDAT parsing failed: Header declares {count} tables, but only {reader.remaining_bytes} '
                    F'bytes follow the table count.')
            headers = [RuntimeDataTableHeader(reader) for _ in range(count)]
        except EOF as E:
            raise TruncatedContainer from E

        regions: dict[RuntimeDataPartType, memoryview] = {}

        for k, header in enumerate(headers):
            kind = header.table_type
            if not isinstance(kind, RuntimeDataPartType) or kind is RuntimeDataPartType.Invalid:
                _log.info(F'ignoring table {k} of unknown type {kind!r}')
                continue
            if header.end > len(view):
                raise TruncatedContainer(
                    F'RDAT parsing failed: The {kind.name} table spans [{header.offset:#x}, {header.end:#x}), '
                    F'but the container has only {len(view):#x} bytes.')
            if kind in regions:
                _log.warning(F'the container declares more than one {kind.name} table; using the last one')
            _log.debug(F'found {header!r}')
            regions[kind] = view[header.offset:header.end]

        def region(kind: RuntimeDataPartType):
            return regions.get(kind, B'')

        strings = StringTableReader(region(RuntimeDataPartType.String))
        indices = IndexTableReader(region(RuntimeDataPartType.Index))
        resources = ResourceTableReader(region(RuntimeDataPartType.Resource), strings)
        functions = FunctionTableReader(region(RuntimeDataPartType.Function), strings, indices, resources)

        self.headers = headers
        self.context = RuntimeDataContext(strings, indices, resources, functions)

    def init_from_rdat(self, data: buf) -> bool:
        """
        Parse the given container and return whether this succeeded. On failure, the error is
        logged and all tables are empty.
        """
        try:
            self.load(data)
        except RuntimeDataError as E:
            _log.error(exception_to_string(E))
            self._reset()
            return False
        return True
