from __future__ import annotations


class TinyVGError(ValueError):
    """Base class for every failure raised by the TinyVG codec."""


class DecodeError(TinyVGError):
    def __init__(self, message: str, *, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (at byte 0x{offset:04X})"
        super().__init__(message)
        self.offset = offset


class EncodeError(TinyVGError):
    pass


class InvalidMagicOrVersionError(DecodeError):
    pass


class UnsupportedColorFormatError(DecodeError):
    def __init__(self, encoding: int, *, offset: int | None = None) -> None:
        super().__init__(f"Color encoding {encoding} is not supported", offset=offset)
        self.encoding = encoding


class EmptyColorTableError(DecodeError):
    def __init__(self, *, offset: int | None = None) -> None:
        super().__init__("Color table contains nothing", offset=offset)


class ColorIndexOutOfRangeError(DecodeError):
    def __init__(self, index: int, table_size: int, *, offset: int | None = None) -> None:
        super().__init__(
            f"Color index {index} is outside the color table ({table_size} entries)",
            offset=offset,
        )
        self.index = index
        self.table_size = table_size


class UnknownStyleKindError(DecodeError):
    def __init__(self, kind: int, *, offset: int | None = None) -> None:
        super().__init__(f"Unknown style kind {kind}", offset=offset)
        self.kind = kind


class UnsupportedCommandError(DecodeError):
    def __init__(self, command_id: int, *, offset: int | None = None) -> None:
        super().__init__(f"Invalid command in document (0x{command_id:02X})", offset=offset)
        self.command_id = command_id


class UnsupportedPathSegmentError(DecodeError):
    def __init__(self, kind: int, *, offset: int | None = None) -> None:
        super().__init__(f"Unrecognized path segment kind {kind}", offset=offset)
        self.kind = kind


class UnexpectedEndOfStreamError(DecodeError):
    def __init__(self, offset: int, needed: int, available: int) -> None:
        super().__init__(
            f"Needed {needed} byte(s) but only {available} remain",
            offset=offset,
        )
        self.needed = needed
        self.available = available


class PathSyntaxError(EncodeError):
    CONTEXT_CHARS = 40

    def __init__(self, message: str, text: str, offset: int) -> None:
        rest = text[offset:]
        if len(rest) > self.CONTEXT_CHARS:
            rest = rest[: self.CONTEXT_CHARS] + "…"
        self.offset = offset
        self.context = f"{text[:offset]}\u0332{rest}"
        super().__init__(f"{message} at offset {offset}: '{self.context}'")
        self.reason = message


class UnitRangeError(EncodeError):
    def __init__(self, value: float, raw: int | None, scale_bits: int) -> None:
        scale = 1 << scale_bits
        if raw is None:
            message = f"{value} is out of range when encoded with scale {scale}"
        else:
            message = f"{value} is out of range when encoded as {raw} with scale {scale}"
        super().__init__(message)
        self.value = value
        self.raw = raw
        self.scale_bits = scale_bits
