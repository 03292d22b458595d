"""
Constants of the DXIL runtime data (RDAT) format and of the DXIL enumerations that occur in its
records.
"""
from __future__ import annotations

import enum

from rdat.lib.structures import FlagAccessMixin

ABSENT = 0xFFFFFFFF
"""
Value of an optional reference field that refers to nothing.
"""

TABLE_HEADER_SIZE = 12
RESOURCE_INFO_SIZE = 8 * 4
FUNCTION_INFO_SIZE = 11 * 4


class RuntimeDataPartType(enum.IntEnum):
    Invalid  = 0  # noqa
    String   = 1  # noqa
    Function = 2  # noqa
    Resource = 3  # noqa
    Index    = 4  # noqa

    def __repr__(self):
        return self.name


class ResourceClass(enum.IntEnum):
    SRV     = 0  # noqa
    UAV     = 1  # noqa
    CBuffer = 2  # noqa
    Sampler = 3  # noqa
    Invalid = 4  # noqa

    def __repr__(self):
        return self.name


PARTITION_ORDER = (
    ResourceClass.CBuffer,
    ResourceClass.Sampler,
    ResourceClass.SRV,
    ResourceClass.UAV,
)
"""
The order in which resource records are grouped by class in the resource table.
"""


class ResourceKind(enum.IntEnum):
    Invalid                = 0x00  # noqa
    Texture1D              = 0x01  # noqa
    Texture2D              = 0x02  # noqa
    Texture2DMS            = 0x03  # noqa
    Texture3D              = 0x04  # noqa
    TextureCube            = 0x05  # noqa
    Texture1DArray         = 0x06  # noqa
    Texture2DArray         = 0x07  # noqa
    Texture2DMSArray       = 0x08  # noqa
    TextureCubeArray       = 0x09  # noqa
    TypedBuffer            = 0x0A  # noqa
    RawBuffer              = 0x0B  # noqa
    StructuredBuffer       = 0x0C  # noqa
    CBuffer                = 0x0D  # noqa
    Sampler                = 0x0E  # noqa
    TBuffer                = 0x0F  # noqa
    RTAccelerationStructure = 0x10  # noqa
    FeedbackTexture2D      = 0x11  # noqa
    FeedbackTexture2DArray = 0x12  # noqa

    def __repr__(self):
        return self.name


class ShaderKind(enum.IntEnum):
    Pixel         = 0x00  # noqa
    Vertex        = 0x01  # noqa
    Geometry      = 0x02  # noqa
    Hull          = 0x03  # noqa
    Domain        = 0x04  # noqa
    Compute       = 0x05  # noqa
    Library       = 0x06  # noqa
    RayGeneration = 0x07  # noqa
    Intersection  = 0x08  # noqa
    AnyHit        = 0x09  # noqa
    ClosestHit    = 0x0A  # noqa
    Miss          = 0x0B  # noqa
    Callable      = 0x0C  # noqa
    Mesh          = 0x0D  # noqa
    Amplification = 0x0E  # noqa
    Invalid       = 0x0F  # noqa

    def __repr__(self):
        return self.name

    @property
    def has_payload(self):
        """
        Hit, miss and closest hit shaders receive a ray payload.
        """
        return self in (ShaderKind.AnyHit, ShaderKind.ClosestHit, ShaderKind.Miss)

    @property
    def has_parameter(self):
        """
        Callable shaders receive a parameter instead of a payload.
        """
        return self is ShaderKind.Callable


class ShaderFeature(FlagAccessMixin, enum.IntFlag):
    Doubles                                  = 0x000001  # noqa
    ComputeShadersPlusRawAndStructuredBuffers = 0x000002  # noqa
    UAVsAtEveryStage                         = 0x000004  # noqa
    UAVs64                                   = 0x000008  # noqa
    MinimumPrecision                         = 0x000010  # noqa
    DoubleExtensions11_1                     = 0x000020  # noqa
    ShaderExtensions11_1                     = 0x000040  # noqa
    Level9ComparisonFiltering                = 0x000080  # noqa
    TiledResources                           = 0x000100  # noqa
    StencilRef                               = 0x000200  # noqa
    InnerCoverage                            = 0x000400  # noqa
    TypedUAVLoadAdditionalFormats            = 0x000800  # noqa
    ROVs                                     = 0x001000  # noqa
    ViewportAndRTArrayIndex                  = 0x002000  # noqa
    WaveOps                                  = 0x004000  # noqa
    Int64Ops                                 = 0x008000  # noqa
    ViewID                                   = 0x010000  # noqa
    Barycentrics                             = 0x020000  # noqa
    NativeLowPrecision                       = 0x040000  # noqa
    ShadingRate                              = 0x080000  # noqa
    Raytracing_Tier_1_1                      = 0x100000  # noqa
    SamplerFeedback                          = 0x200000  # noqa


class StringDeduplication(str, enum.Enum):
    """
    Strategy used when materializing strings from the string table:

    - `CONTENT`: strings with identical bytes share one `str` object.
    - `LOCATION`: strings share one `str` object only when they were read from the same string
      table offset; identical text at different offsets yields separate objects.
    """
    CONTENT = 'content'
    LOCATION = 'location'
