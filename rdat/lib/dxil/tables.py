"""
Zero-copy readers for the tables of a DXIL runtime data container, and the view objects that
they produce. The readers never copy table contents; every access decodes the requested record
from the underlying buffer and checks all offsets against the bounds of the table first.

The string, index, resource and function tables reference each other by offset or index. These
references are represented by the distinct integer types `rdat.lib.dxil.tables.StringRef`,
`rdat.lib.dxil.tables.ResourceRef` and `rdat.lib.dxil.tables.RowRef`, and a reader refuses a
reference of the wrong kind.
"""
from __future__ import annotations

import codecs

from typing import NamedTuple, Optional

from rdat.lib.dxil.constants import (
    ABSENT,
    FUNCTION_INFO_SIZE,
    PARTITION_ORDER,
    RESOURCE_INFO_SIZE,
    ResourceClass,
    ResourceKind,
    ShaderFeature,
    ShaderKind,
)
from rdat.lib.dxil.errors import (
    InvalidPartition,
    ReferenceOutOfRange,
    RuntimeDataError,
    StringDecodeError,
)
from rdat.lib.enumeration import valueof
from rdat.lib.environment import logger
from rdat.lib.structures import EOF, Struct, StructReader
from rdat.lib.types import Iterator, buf

_log = logger(__name__)


class _TypedReference(int):
    def __repr__(self):
        return F'{self.__class__.__name__}({int(self):#x})'


class StringRef(_TypedReference):
    """
    Byte offset of a string in the string table.
    """


class ResourceRef(_TypedReference):
    """
    Index of a record in the resource table.
    """


class RowRef(_TypedReference):
    """
    Word offset of the count field of a row in the index table.
    """

    @property
    def absent(self) -> bool:
        return self == ABSENT


def _refuse(reference: int, table: str, *kinds: type):
    if isinstance(reference, kinds):
        raise TypeError(F'A {reference!r} cannot be used to address the {table} table.')


def _view(data: buf) -> memoryview:
    view = memoryview(data)
    if view.ndim != 1 or view.itemsize != 1:
        view = view.cast('B')
    return view


def _record_count(data: memoryview, size: int, table: str) -> int:
    count, rest = divmod(len(data), size)
    if rest:
        _log.warning(F'ignoring {rest} trailing bytes in the {table} table')
    return count


class ResourceInfo(Struct):
    """
    A resource binding record of the resource table.
    """
    def __init__(self, reader: StructReader[memoryview]):
        self.resource_class = reader.u32()
        self.kind = reader.u32()
        self.id = reader.u32()
        self.space = reader.u32()
        self.lower_bound = reader.u32()
        self.upper_bound = reader.u32()
        self.name = StringRef(reader.u32())
        self.flags = reader.u32()


class FunctionInfo(Struct):
    """
    A shader function record of the function table. The fields `shader_stage_flag` and
    `min_shader_target` are reserved and carried through unchanged.
    """
    def __init__(self, reader: StructReader[memoryview]):
        self.name = StringRef(reader.u32())
        self.unmangled_name = StringRef(reader.u32())
        self.resources = RowRef(reader.u32())
        self.function_dependencies = RowRef(reader.u32())
        self.shader_kind = reader.u32()
        self.payload_size_in_bytes = reader.u32()
        self.attribute_size_in_bytes = reader.u32()
        self.feature_info1 = reader.u32()
        self.feature_info2 = reader.u32()
        self.shader_stage_flag = reader.u32()
        self.min_shader_target = reader.u32()


class StringTableReader:
    """
    Resolves offsets into the string table, a flat region of nul-terminated UTF-8 strings.
    """
    def __init__(self, data: buf = B''):
        self._data = _view(data)
        if self._data and self._data[-1] != 0:
            _log.warning('the string table does not end with a nul byte')

    def __len__(self):
        return len(self._data)

    def get(self, offset: int) -> memoryview:
        """
        Return the bytes of the string that starts at `offset`, excluding its terminator.
        """
        _refuse(offset, 'string', ResourceRef, RowRef)
        if not 0 <= offset < len(self._data):
            raise ReferenceOutOfRange('string', offset, len(self._data), 'offset')
        reader = StructReader(self._data)
        reader.seekset(offset)
        try:
            return reader.read_c_string()
        except EOF as E:
            raise RuntimeDataError(
                F'RDAT parsing failed: The string at offset {offset:#x} is not terminated.') from E

    def get_string(self, offset: int) -> str:
        """
        Return the string that starts at `offset`, decoded as UTF-8.
        """
        data = self.get(offset)
        try:
            return codecs.decode(data, 'utf8')
        except UnicodeDecodeError as E:
            raise StringDecodeError(offset, str(E)) from E


class IndexRow:
    """
    A view of one row of the index table; its elements are the words that follow the count word.
    """
    __slots__ = '_data', '_start', '_count', '_ref'

    def __init__(self, data: memoryview, ref: int, start: int, count: int):
        self._data = data
        self._ref = ref
        self._start = start
        self._count = count

    @property
    def count(self) -> int:
        return self._count

    def at(self, i: int) -> int:
        if not 0 <= i < self._count:
            raise ReferenceOutOfRange('index row', i, self._count, 'element index')
        offset = 4 * (self._start + i)
        return int.from_bytes(self._data[offset:offset + 4], 'little')

    def __len__(self):
        return self._count

    def __getitem__(self, i: int) -> int:
        return self.at(i)

    def __iter__(self) -> Iterator[int]:
        for i in range(self._count):
            yield self.at(i)

    def __repr__(self):
        return F'IndexRow({self._ref:#x}, {list(self)!r})'


class IndexTableReader:
    """
    Resolves row offsets into the index table. The table is a flat array of 32-bit words in which
    each row consists of a count word followed by that many element words. A row is addressed by
    the word offset of its count word.
    """
    def __init__(self, data: buf = B''):
        self._data = _view(data)
        self._size = _record_count(self._data, 4, 'index')

    def __len__(self):
        return self._size

    def get_row(self, ref: int) -> IndexRow:
        _refuse(ref, 'index', StringRef, ResourceRef)
        size = self._size
        if not 0 <= ref < size:
            raise ReferenceOutOfRange('index', ref, size, 'row offset')
        offset = 4 * ref
        count = int.from_bytes(self._data[offset:offset + 4], 'little')
        if ref + 1 + count > size:
            raise ReferenceOutOfRange('index', ref + 1 + count, size, 'end of the row at')
        return IndexRow(self._data, ref, ref + 1, count)


class ResourceRange(NamedTuple):
    start: int
    count: int

    def __contains__(self, index: int):
        return self.start <= index < self.start + self.count


class ResourceReader:
    """
    A view of one record of the resource table.
    """
    def __init__(self, info: ResourceInfo, index: int, strings: StringTableReader):
        self.info = info
        self.index = index
        self._strings = strings

    @property
    def resource_class(self) -> ResourceClass | int:
        return valueof(ResourceClass, self.info.resource_class)

    @property
    def kind(self) -> ResourceKind | int:
        return valueof(ResourceKind, self.info.kind)

    @property
    def id(self) -> int:
        return self.info.id

    @property
    def space(self) -> int:
        return self.info.space

    @property
    def lower_bound(self) -> int:
        return self.info.lower_bound

    @property
    def upper_bound(self) -> int:
        return self.info.upper_bound

    @property
    def flags(self) -> int:
        return self.info.flags

    @property
    def name_ref(self) -> StringRef:
        return self.info.name

    @property
    def raw_name(self) -> memoryview:
        return self._strings.get(self.info.name)

    @property
    def name(self) -> str:
        return self._strings.get_string(self.info.name)

    def __repr__(self):
        return F'<ResourceReader {self.index}: {self.resource_class!r} {self.name}>'


class ResourceTableReader:
    """
    Reads the resource table, an array of fixed size records that are grouped by resource class in
    the order CBuffer, Sampler, SRV, UAV. The grouping is verified once when the table is loaded.
    Records with an unknown class are not counted, and they are only accepted after all records
    of a known class.
    """
    def __init__(self, data: buf = B'', strings: Optional[StringTableReader] = None):
        self._data = data = _view(data)
        self._strings = strings or StringTableReader()
        self._records = _record_count(data, RESOURCE_INFO_SIZE, 'resource')
        counts = dict.fromkeys(PARTITION_ORDER, 0)
        for index in range(self._records):
            rc = self._class_of(index)
            try:
                counts[ResourceClass(rc)] += 1
            except (ValueError, KeyError):
                _log.debug(F'resource record {index} has unknown class {rc}')
        self.partition: dict[ResourceClass, ResourceRange] = {}
        start = 0
        for rc in PARTITION_ORDER:
            count = counts[rc]
            self.partition[rc] = ResourceRange(start, count)
            for index in range(start, start + count):
                if (found := self._class_of(index)) != rc:
                    raise InvalidPartition(
                        F'RDAT parsing failed: Resource record {index} has class {valueof(ResourceClass, found)!r}, '
                        F'expected {rc!r}; records are not grouped by class.')
            start += count

    def _class_of(self, index: int) -> int:
        offset = index * RESOURCE_INFO_SIZE
        return int.from_bytes(self._data[offset:offset + 4], 'little')

    @property
    def num_records(self) -> int:
        return self._records

    @property
    def num_resources(self) -> int:
        return sum(r.count for r in self.partition.values())

    @property
    def num_cbuffers(self) -> int:
        return self.partition[ResourceClass.CBuffer].count

    @property
    def num_samplers(self) -> int:
        return self.partition[ResourceClass.Sampler].count

    @property
    def num_srvs(self) -> int:
        return self.partition[ResourceClass.SRV].count

    @property
    def num_uavs(self) -> int:
        return self.partition[ResourceClass.UAV].count

    def get_item(self, index: int) -> ResourceReader:
        """
        Return a view of the record with the given flat index.
        """
        _refuse(index, 'resource', StringRef, RowRef)
        if not 0 <= index < self._records:
            raise ReferenceOutOfRange('resource', index, self._records, 'index')
        offset = index * RESOURCE_INFO_SIZE
        info = ResourceInfo.Parse(self._data[offset:offset + RESOURCE_INFO_SIZE])
        return ResourceReader(info, int(index), self._strings)

    def get_class_item(self, rc: ResourceClass, index: int) -> ResourceReader:
        """
        Return a view of the record with the given index among the records of class `rc`.
        """
        rc = ResourceClass(rc)
        start, count = self.partition[rc]
        if not 0 <= index < count:
            raise ReferenceOutOfRange(rc.name, index, count, 'index')
        return self.get_item(start + index)

    def get_cbuffer(self, index: int) -> ResourceReader:
        return self.get_class_item(ResourceClass.CBuffer, index)

    def get_sampler(self, index: int) -> ResourceReader:
        return self.get_class_item(ResourceClass.Sampler, index)

    def get_srv(self, index: int) -> ResourceReader:
        return self.get_class_item(ResourceClass.SRV, index)

    def get_uav(self, index: int) -> ResourceReader:
        return self.get_class_item(ResourceClass.UAV, index)

    def __iter__(self) -> Iterator[ResourceReader]:
        for index in range(self.num_resources):
            yield self.get_item(index)


class FunctionReader:
    """
    A view of one record of the function table. The payload size and the parameter size are the
    same field: hit, miss and closest hit shaders use it for the payload, callable shaders use it
    for the parameter.
    """
    def __init__(
        self,
        info: FunctionInfo,
        index: int,
        strings: StringTableReader,
        indices: IndexTableReader,
        resources: ResourceTableReader,
    ):
        self.info = info
        self.index = index
        self._strings = strings
        self._indices = indices
        self._resources = resources

    @property
    def name_ref(self) -> StringRef:
        return self.info.name

    @property
    def unmangled_name_ref(self) -> StringRef:
        return self.info.unmangled_name

    @property
    def name(self) -> str:
        return self._strings.get_string(self.info.name)

    @property
    def unmangled_name(self) -> str:
        return self._strings.get_string(self.info.unmangled_name)

    @property
    def shader_kind(self) -> ShaderKind | int:
        return valueof(ShaderKind, self.info.shader_kind)

    @property
    def payload_size_in_bytes(self) -> int:
        return self.info.payload_size_in_bytes

    @property
    def parameter_size_in_bytes(self) -> int:
        return self.info.payload_size_in_bytes

    @property
    def attribute_size_in_bytes(self) -> int:
        return self.info.attribute_size_in_bytes

    @property
    def feature_info1(self) -> int:
        return self.info.feature_info1

    @property
    def feature_info2(self) -> int:
        return self.info.feature_info2

    @property
    def feature_flag(self) -> int:
        return self.info.feature_info2 << 32 | self.info.feature_info1

    @property
    def features(self) -> ShaderFeature:
        return ShaderFeature(self.feature_flag)

    @property
    def shader_stage_flag(self) -> int:
        return self.info.shader_stage_flag

    @property
    def min_shader_target(self) -> int:
        return self.info.min_shader_target

    def _row(self, ref: RowRef):
        if ref.absent:
            return None
        return self._indices.get_row(ref)

    @property
    def num_resources(self) -> int:
        row = self._row(self.info.resources)
        return 0 if row is None else row.count

    def get_resource_ref(self, i: int) -> ResourceRef:
        if (row := self._row(self.info.resources)) is None:
            raise ReferenceOutOfRange('resource list', i, 0, 'element index')
        return ResourceRef(row.at(i))

    def get_resource(self, i: int) -> ResourceReader:
        return self._resources.get_item(self.get_resource_ref(i))

    def resources(self) -> Iterator[ResourceReader]:
        if (row := self._row(self.info.resources)) is None:
            return
        for index in row:
            yield self._resources.get_item(ResourceRef(index))

    @property
    def num_dependencies(self) -> int:
        row = self._row(self.info.function_dependencies)
        return 0 if row is None else row.count

    def get_dependency_ref(self, i: int) -> StringRef:
        if (row := self._row(self.info.function_dependencies)) is None:
            raise ReferenceOutOfRange('dependency list', i, 0, 'element index')
        return StringRef(row.at(i))

    def get_dependency(self, i: int) -> str:
        return self._strings.get_string(self.get_dependency_ref(i))

    def dependency_refs(self) -> Iterator[StringRef]:
        if (row := self._row(self.info.function_dependencies)) is None:
            return
        for offset in row:
            yield StringRef(offset)

    def dependencies(self) -> Iterator[str]:
        for ref in self.dependency_refs():
            yield self._strings.get_string(ref)

    def __repr__(self):
        return F'<FunctionReader {self.index}: {self.name}>'


class FunctionTableReader:
    """
    Reads the function table, an array of fixed size function records.
    """
    def __init__(
        self,
        data: buf = B'',
        strings: Optional[StringTableReader] = None,
        indices: Optional[IndexTableReader] = None,
        resources: Optional[ResourceTableReader] = None,
    ):
        self._data = _view(data)
        self._count = _record_count(self._data, FUNCTION_INFO_SIZE, 'function')
        self._strings = strings = strings or StringTableReader()
        self._indices = indices or IndexTableReader()
        self._resources = resources or ResourceTableReader(strings=strings)

    @property
    def num_functions(self) -> int:
        return self._count

    def get_item(self, index: int) -> FunctionReader:
        _refuse(index, 'function', StringRef, ResourceRef, RowRef)
        if not 0 <= index < self._count:
            raise ReferenceOutOfRange('function', index, self._count, 'index')
        offset = index * FUNCTION_INFO_SIZE
        info = FunctionInfo.Parse(self._data[offset:offset + FUNCTION_INFO_SIZE])
        return FunctionReader(info, index, self._strings, self._indices, self._resources)

    def __iter__(self) -> Iterator[FunctionReader]:
        for index in range(self._count):
            yield self.get_item(index)


class RuntimeDataContext(NamedTuple):
    """
    The four table readers of one container.
    """
    string_table: StringTableReader
    index_table: IndexTableReader
    resource_table: ResourceTableReader
    function_table: FunctionTableReader
