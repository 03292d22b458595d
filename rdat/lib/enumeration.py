#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from enum import Enum
from typing import Any, Optional


def makeinstance(cls: type[Enum], value: Optional[Any]) -> Enum:
    if value is None or isinstance(value, cls):
        return value
    if isinstance(value, str):
        needle = value.upper()
        for item in cls:
            if item.name.upper() == needle:
                return item
        raise ValueError(F'No entry named {value} in {cls.__name__}.')
    try:
        return cls(value)
    except Exception as E:
        raise ValueError(F'Could not transform {value} into a {cls.__name__}.') from E


def valueof(cls: type[Enum], value: int):
    """
    Convert `value` into a member of `cls` if it names one, and return the integer unchanged if
    it does not.
    """
    try:
        return cls(value)
    except ValueError:
        return value
