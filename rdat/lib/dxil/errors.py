"""
Exceptions raised while decoding DXIL runtime data.
"""
from __future__ import annotations


class RuntimeDataError(ValueError):
    """
    Base class of all decode failures. Every malformed input is reported by raising a subclass of
    this exception; no partially decoded result is returned in that case.
    """
    def __init__(self, msg=None):
        ValueError.__init__(self, msg or 'RDAT parsing failed: Corrupt runtime data.')


class TruncatedContainer(RuntimeDataError):
    """
    The container header or one of the table regions it declares extends beyond the buffer.
    """
    def __init__(self, msg=None):
        super().__init__(msg or 'RDAT parsing failed: Container is truncated.')


class ReferenceOutOfRange(RuntimeDataError, IndexError):
    """
    A reference from one table into another lies outside the bounds of the target table.
    """
    def __init__(self, table: str, reference: int, limit: int, what: str = 'reference'):
        super().__init__(
            F'RDAT parsing failed: The {what} {reference:#x} is out of range for the {table} table with limit {limit:#x}.')
        self.table = table
        self.reference = reference
        self.limit = limit


class InvalidPartition(RuntimeDataError):
    """
    The resource records are not grouped by resource class in the expected order.
    """


class StringDecodeError(RuntimeDataError):
    """
    A string table entry could not be decoded as UTF-8.
    """
    def __init__(self, offset: int, reason: str):
        super().__init__(F'RDAT parsing failed: The string at offset {offset:#x} could not be decoded: {reason}')
        self.offset = offset
