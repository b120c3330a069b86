"""Serialization modes and serial number formatting."""

from __future__ import annotations

from enum import Enum


class SerializationMode(str, Enum):
    """JBK or Lot numbering; each fixes a padding width and a ceiling."""

    JBK = "JBK"
    LOT = "Lot"

    @property
    def width(self) -> int:
        return _WIDTHS[self]

    @property
    def ceiling(self) -> int:
        return _CEILINGS[self]

    @classmethod
    def parse(cls, value: str | SerializationMode) -> SerializationMode:
        """Case-insensitive lookup by value ("jbk", "LOT", ...)."""
        if isinstance(value, cls):
            return value
        for mode in cls:
            if mode.value.lower() == str(value).strip().lower():
                return mode
        msg = f"Unknown serialization mode: {value!r}"
        raise ValueError(msg)


_WIDTHS = {SerializationMode.JBK: 3, SerializationMode.LOT: 9}
_CEILINGS = {SerializationMode.JBK: 500, SerializationMode.LOT: 999_999_999}


def format_serial(value: int, mode: SerializationMode) -> str:
    """Render *value* zero-padded to the mode's width, e.g. 7 -> "007"."""
    if value < 0:
        msg = "serial value must not be negative"
        raise ValueError(msg)
    return f"{value:0{mode.width}d}"


def parse_serial(serial: str | int) -> int:
    """Return the integer behind a formatted serial ("007" -> 7)."""
    if isinstance(serial, int):
        value = serial
    else:
        text = serial.strip()
        if not (text.isascii() and text.isdigit()):
            msg = f"Not a serial number: {serial!r}"
            raise ValueError(msg)
        value = int(text)
    if value < 0:
        msg = "serial value must not be negative"
        raise ValueError(msg)
    return value


def normalize_part(part: str) -> str:
    """Reduce a picker entry like "PART\\nDescription" to its part number."""
    number = part.split("\n", 1)[0].strip()
    if not number:
        msg = "part identifier must not be empty"
        raise ValueError(msg)
    return number
