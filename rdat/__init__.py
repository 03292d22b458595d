R"""
A reader for DXIL runtime data (RDAT), the reflection container that the DirectX shader compiler
attaches to compiled shader libraries. It describes the library's functions, the resources each
function binds, and the functions each function depends on.

The package is organized as follows:

1. `rdat.lib.dxil.tables`: zero-copy readers for the string, index, resource and function tables
2. `rdat.lib.dxil.runtime`: the container parser `rdat.lib.dxil.runtime.DxilRuntimeData`
3. `rdat.lib.dxil.reflection`: the materializer `rdat.lib.dxil.reflection.DxilRuntimeReflection`
   which converts the tables into a `rdat.lib.dxil.reflection.DxilLibraryDesc`
4. `rdat.dump`: a command line tool that prints the description of RDAT files

The most convenient entry point is `rdat.decode`:

    >>> desc = rdat.decode(data)
    >>> [f.name for f in desc.functions]
"""
from __future__ import annotations

__version__ = '0.3.1'
__distribution__ = 'dxil-rdat'

from rdat.lib.dxil.constants import (
    ResourceClass,
    ResourceKind,
    ShaderFeature,
    ShaderKind,
    StringDeduplication,
)
from rdat.lib.dxil.errors import RuntimeDataError
from rdat.lib.dxil.reflection import (
    DxilFunction,
    DxilLibraryDesc,
    DxilResource,
    DxilRuntimeReflection,
    decode,
)
from rdat.lib.dxil.runtime import DxilRuntimeData

__all__ = [
    'decode',
    'DxilFunction',
    'DxilLibraryDesc',
    'DxilResource',
    'DxilRuntimeData',
    'DxilRuntimeReflection',
    'ResourceClass',
    'ResourceKind',
    'RuntimeDataError',
    'ShaderFeature',
    'ShaderKind',
    'StringDeduplication',
]
