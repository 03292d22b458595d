"""
This module provides JSON encoding and decoding based on the orJSON library. Objects that define
a `__json__` method are serialized through it, which is how the descriptors of
`rdat.lib.dxil.reflection` are converted.
"""
from __future__ import annotations

import codecs

from enum import Enum, IntFlag

import orjson

from rdat.lib.tools import isbuffer
from rdat.lib.types import Any, Callable


def standard_conversions(o):
    """
    Converts enumerations to their names, flags to lists of names, and `set`, `tuple`, and
    `frozenset` objects to `list`s for JSON serialization. Objects with a `__json__` method are
    converted by calling it.
    """
    try:
        return o.__json__()
    except AttributeError:
        pass
    if isinstance(o, IntFlag):
        return [flag.name for flag in o.__class__ if flag.name and o & flag == flag]
    if isinstance(o, Enum):
        return o.name
    if isinstance(o, (set, tuple, frozenset)):
        return list(o)
    if isbuffer(o):
        return codecs.decode(o, 'latin1')
    raise TypeError


def preprocess(o):
    """
    This method ensures that no integers requiring more than 64 bits are stored within nested
    dictionaries and lists of the input object. Integers that exceed this limit are converted
    to hexadecimal string representations with prefix.
    """
    if isinstance(o, dict):
        for k, v in o.items():
            o[k] = preprocess(v)
    elif isinstance(o, list):
        for k, v in enumerate(o):
            o[k] = preprocess(v)
    elif isinstance(o, int) and o.bit_length() > 64:
        return hex(o)
    return o


def dumps(
    object,
    pretty: bool = True,
    checks: bool = True,
    tojson: Callable[[Any], Any] | None = None,
) -> bytes:
    """
    Dump the input to JSON. The `pretty` option controls whether the output is indented or
    minified, and an optional conversion handler can be passed as `tojson` to serialize Python
    objects that are not handled natively. The option `checks` can be set to false to prevent
    preprocessing of the input data.
    """
    default = tojson or standard_conversions
    options = (
        0
        | orjson.OPT_NON_STR_KEYS
        | orjson.OPT_PASSTHROUGH_DATACLASS
    )
    if pretty:
        options |= orjson.OPT_INDENT_2
    if checks:
        object = preprocess(object)
    return orjson.dumps(object, option=options, default=default)


def loads(data):
    return orjson.loads(memoryview(data))
