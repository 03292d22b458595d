"""
Helpers to assemble RDAT containers for tests.
"""
from __future__ import annotations

import struct

from rdat.lib.dxil.constants import ABSENT, ResourceClass, ResourceKind, RuntimeDataPartType, ShaderKind

from ... import TestBase

__all__ = ['ABSENT', 'assemble', 'ContainerBuilder', 'TestBase']


def assemble(*tables: tuple[int, bytes]) -> bytes:
    """
    Lay out the given (type, data) pairs as an RDAT container: the table count, the table headers,
    and then the table data in the given order.
    """
    offset = 4 + 12 * len(tables)
    head = bytearray(struct.pack('<I', len(tables)))
    body = bytearray()
    for kind, data in tables:
        head.extend(struct.pack('<III', kind, len(data), offset + len(body)))
        body.extend(data)
    return bytes(head + body)


class ContainerBuilder:

    def __init__(self):
        self.strings = bytearray()
        self.index: list[int] = []
        self.resources: list[tuple[int, ...]] = []
        self.functions: list[tuple[int, ...]] = []
        self._offsets: dict[str, int] = {}

    def string(self, text: str, share: bool = True) -> int:
        if share and text in self._offsets:
            return self._offsets[text]
        offset = len(self.strings)
        self.strings.extend(text.encode('utf8'))
        self.strings.append(0)
        self._offsets.setdefault(text, offset)
        return offset

    def row(self, *values: int) -> int:
        offset = len(self.index)
        self.index.append(len(values))
        self.index.extend(values)
        return offset

    def resource(
        self,
        name: str,
        rc: int = ResourceClass.CBuffer,
        kind: int = ResourceKind.CBuffer,
        id: int = 0,
        space: int = 0,
        lower: int = 0,
        upper: int = 0,
        flags: int = 0,
    ) -> int:
        self.resources.append((rc, kind, id, space, lower, upper, self.string(name), flags))
        return len(self.resources) - 1

    def function(
        self,
        name: str,
        unmangled: str | None = None,
        resources: list[int] | None = None,
        dependencies: list[str] | None = None,
        kind: int = ShaderKind.Library,
        payload: int = 0,
        attribute: int = 0,
        feature1: int = 0,
        feature2: int = 0,
        stage: int = 0,
        target: int = 0,
    ) -> int:
        name_ref = self.string(name)
        unmangled_ref = self.string(name if unmangled is None else unmangled)
        resources_ref = ABSENT if resources is None else self.row(*resources)
        dependencies_ref = ABSENT if dependencies is None else self.row(*(self.string(d) for d in dependencies))
        self.functions.append((
            name_ref,
            unmangled_ref,
            resources_ref,
            dependencies_ref,
            kind,
            payload,
            attribute,
            feature1,
            feature2,
            stage,
            target,
        ))
        return len(self.functions) - 1

    def tables(self) -> list[tuple[int, bytes]]:
        tables = []
        if self.strings:
            tables.append((RuntimeDataPartType.String, bytes(self.strings)))
        if self.functions:
            tables.append((RuntimeDataPartType.Function, b''.join(struct.pack('<11I', *f) for f in self.functions)))
        if self.resources:
            tables.append((RuntimeDataPartType.Resource, b''.join(struct.pack('<8I', *r) for r in self.resources)))
        if self.index:
            tables.append((RuntimeDataPartType.Index, struct.pack(F'<{len(self.index)}I', *self.index)))
        return tables

    def build(self, *extra: tuple[int, bytes]) -> bytes:
        return assemble(*self.tables(), *extra)
