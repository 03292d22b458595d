"""
Materialization of DXIL runtime data into a self-contained description of a shader library.
The zero-copy readers of `rdat.lib.dxil.tables` are walked once and every record is converted
into a `DxilFunction` or `DxilResource`. Strings are decoded into Python strings and shared among
all descriptors that reference them, and resources are shared among all functions that bind them.
None of the resulting objects reference the input buffer.
"""
from __future__ import annotations

import codecs

from dataclasses import dataclass
from typing import Optional, Union

from rdat.lib.dxil.constants import (
    ResourceClass,
    ResourceKind,
    ShaderFeature,
    ShaderKind,
    StringDeduplication,
)
from rdat.lib.dxil.errors import RuntimeDataError, StringDecodeError
from rdat.lib.dxil.runtime import DxilRuntimeData
from rdat.lib.dxil.tables import (
    FunctionReader,
    ResourceReader,
    StringRef,
    StringTableReader,
)
from rdat.lib.enumeration import makeinstance
from rdat.lib.environment import environment, logger
from rdat.lib.structures import struct_to_json
from rdat.lib.tools import exception_to_string
from rdat.lib.types import JSONDict, buf

_log = logger(__name__)


@dataclass
class DxilResource:
    resource_class: Union[ResourceClass, int]
    kind: Union[ResourceKind, int]
    id: int
    space: int
    lower_bound: int
    upper_bound: int
    name: str
    flags: int

    def __json__(self) -> JSONDict:
        return {
            'name': self.name,
            'class': struct_to_json(self.resource_class),
            'kind': struct_to_json(self.kind),
            'id': self.id,
            'space': self.space,
            'lower_bound': self.lower_bound,
            'upper_bound': self.upper_bound,
            'flags': self.flags,
        }


@dataclass
class DxilFunction:
    name: str
    unmangled_name: str
    resources: tuple[DxilResource, ...]
    function_dependencies: tuple[str, ...]
    shader_kind: Union[ShaderKind, int]
    payload_size_in_bytes: int
    attribute_size_in_bytes: int
    feature_info1: int
    feature_info2: int
    shader_stage_flag: int
    min_shader_target: int

    @property
    def num_resources(self) -> int:
        return len(self.resources)

    @property
    def num_function_dependencies(self) -> int:
        return len(self.function_dependencies)

    @property
    def parameter_size_in_bytes(self) -> int:
        return self.payload_size_in_bytes

    @property
    def feature_flag(self) -> int:
        return self.feature_info2 << 32 | self.feature_info1

    @property
    def features(self) -> ShaderFeature:
        return ShaderFeature(self.feature_flag)

    def __json__(self) -> JSONDict:
        return {
            'name': self.name,
            'unmangled_name': self.unmangled_name,
            'shader_kind': struct_to_json(self.shader_kind),
            'resources': [r.name for r in self.resources],
            'function_dependencies': list(self.function_dependencies),
            'payload_size_in_bytes': self.payload_size_in_bytes,
            'attribute_size_in_bytes': self.attribute_size_in_bytes,
            'feature_flag': self.feature_flag,
            'features': struct_to_json(self.features),
            'shader_stage_flag': self.shader_stage_flag,
            'min_shader_target': self.min_shader_target,
        }


@dataclass
class DxilSubobject:
    """
    Placeholder for state subobjects; the format does not encode any yet.
    """
    def __json__(self) -> JSONDict:
        return {}


@dataclass
class DxilLibraryDesc:
    functions: tuple[DxilFunction, ...] = ()
    resources: tuple[DxilResource, ...] = ()
    subobjects: tuple[DxilSubobject, ...] = ()

    @property
    def num_functions(self) -> int:
        return len(self.functions)

    @property
    def num_resources(self) -> int:
        return len(self.resources)

    @property
    def num_subobjects(self) -> int:
        return len(self.subobjects)

    def __json__(self) -> JSONDict:
        return {
            'functions': [f.__json__() for f in self.functions],
            'resources': [r.__json__() for r in self.resources],
            'subobjects': [s.__json__() for s in self.subobjects],
        }


class DxilRuntimeReflection:
    """
    Builds a `DxilLibraryDesc` from an RDAT container. The description is built once when the
    container is loaded and then returned by every call to `get_library_reflection`. The `dedup`
    argument selects how decoded strings are shared, see
    `rdat.lib.dxil.constants.StringDeduplication`; it defaults to the value of the environment
    variable `RDAT_DEDUPLICATION`.
    """
    def __init__(self, dedup: Optional[Union[StringDeduplication, str]] = None):
        if dedup is None:
            dedup = environment.deduplication.value
        self.dedup: StringDeduplication = makeinstance(StringDeduplication, dedup)
        self.runtime_data = DxilRuntimeData()
        self._reset()

    def _reset(self):
        self._strings: dict[Union[int, bytes], str] = {}
        self._resources: list[DxilResource] = []
        self._resource_map: dict[int, DxilResource] = {}
        self._functions: list[DxilFunction] = []
        self._desc: Optional[DxilLibraryDesc] = None

    @property
    def initialized(self) -> bool:
        return self._desc is not None

    def load(self, data: buf):
        """
        Parse the container and build the library description. Raises a
        `rdat.lib.dxil.errors.RuntimeDataError` on failure, in which case no description is kept.
        """
        self._reset()
        try:
            runtime_data = DxilRuntimeData(data)
            self._initialize_reflection(runtime_data)
        except Exception:
            self._reset()
            self.runtime_data = DxilRuntimeData()
            raise
        self.runtime_data = runtime_data

    def init_from_rdat(self, data: buf) -> bool:
        """
        Parse the container and build the library description, returning whether this succeeded.
        """
        try:
            self.load(data)
        except RuntimeDataError as E:
            _log.error(exception_to_string(E))
            return False
        return True

    def get_library_reflection(self) -> DxilLibraryDesc:
        if self._desc is None:
            return DxilLibraryDesc()
        return self._desc

    def _get_wide_string(self, strings: StringTableReader, ref: StringRef) -> str:
        if self.dedup is StringDeduplication.LOCATION:
            key = int(ref)
            if (string := self._strings.get(key)) is not None:
                return string
            data = strings.get(ref)
        else:
            data = strings.get(ref)
            key = bytes(data)
            if (string := self._strings.get(key)) is not None:
                return string
        try:
            string = codecs.decode(data, 'utf8')
        except UnicodeDecodeError as E:
            raise StringDecodeError(ref, str(E)) from E
        self._strings[key] = string
        return string

    def _add_resource(self, strings: StringTableReader, reader: ResourceReader) -> DxilResource:
        try:
            return self._resource_map[reader.index]
        except KeyError:
            pass
        resource = DxilResource(
            resource_class=reader.resource_class,
            kind=reader.kind,
            id=reader.id,
            space=reader.space,
            lower_bound=reader.lower_bound,
            upper_bound=reader.upper_bound,
            name=self._get_wide_string(strings, reader.name_ref),
            flags=reader.flags,
        )
        self._resource_map[reader.index] = resource
        self._resources.append(resource)
        return resource

    def _add_function(self, strings: StringTableReader, reader: FunctionReader) -> DxilFunction:
        function = DxilFunction(
            name=self._get_wide_string(strings, reader.name_ref),
            unmangled_name=self._get_wide_string(strings, reader.unmangled_name_ref),
            resources=tuple(self._add_resource(strings, r) for r in reader.resources()),
            function_dependencies=tuple(
                self._get_wide_string(strings, ref) for ref in reader.dependency_refs()),
            shader_kind=reader.shader_kind,
            payload_size_in_bytes=reader.payload_size_in_bytes,
            attribute_size_in_bytes=reader.attribute_size_in_bytes,
            feature_info1=reader.feature_info1,
            feature_info2=reader.feature_info2,
            shader_stage_flag=reader.shader_stage_flag,
            min_shader_target=reader.min_shader_target,
        )
        self._functions.append(function)
        return function

    def _initialize_reflection(self, runtime_data: DxilRuntimeData):
        strings = runtime_data.string_table
        resources = runtime_data.resource_table
        for resource in resources:
            self._add_resource(strings, resource)
        for function in runtime_data.function_table:
            self._add_function(strings, function)
        _log.debug(
            F'materialized {len(self._functions)} functions, {len(self._resources)} resources, '
            F'and {len(self._strings)} strings')
        self._desc = DxilLibraryDesc(
            functions=tuple(self._functions),
            resources=tuple(self._resources),
        )


def decode(data: buf, dedup: Optional[Union[StringDeduplication, str]] = None) -> DxilLibraryDesc:
    """
    Decode an RDAT container into a `DxilLibraryDesc`, raising a
    `rdat.lib.dxil.errors.RuntimeDataError` if the container is malformed.
    """
    reflection = DxilRuntimeReflection(dedup)
    reflection.load(data)
    return reflection.get_library_reflection()
