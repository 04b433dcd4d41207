# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Scalar type descriptors with an explicit wire width.

Python has a single ``int`` and a single ``float``; these aliases attach the
width to the annotation so the codec can range check and round when decoding::

    @dataclass
    class Packet:
        sequence: Int32
        ratio: Float32
        flag: Char
"""

import struct
from dataclasses import dataclass
from typing import Annotated


@dataclass(frozen=True)
class IntegerWidth:
    bits: int

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1))

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1

    def accepts(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value


@dataclass(frozen=True)
class FloatWidth:
    bits: int

    def narrow(self, value: float) -> float:
        if self.bits == 32:
            return float(struct.unpack("<f", struct.pack("<f", value))[0])
        return value


@dataclass(frozen=True)
class CharLiteral:
    """Marks a ``str`` that must hold exactly one character."""


Int8 = Annotated[int, IntegerWidth(8)]
Int16 = Annotated[int, IntegerWidth(16)]
Int32 = Annotated[int, IntegerWidth(32)]
Int64 = Annotated[int, IntegerWidth(64)]
Float32 = Annotated[float, FloatWidth(32)]
Float64 = Annotated[float, FloatWidth(64)]
Char = Annotated[str, CharLiteral()]


__all__ = [
    "IntegerWidth",
    "FloatWidth",
    "CharLiteral",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
    "Char",
]
