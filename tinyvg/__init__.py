"""
TinyVG codec utilities split into modules for reuse.
"""

from .colors import NAMED_COLORS, parse_color, translate_color
from .decoder import (
    MAGIC,
    VERSION,
    CommandDecoder,
    decode,
    draw_command,
    open_document,
    read_dimensions,
    render,
    render_document,
    resolve_style,
)
from .encoder import (
    MAX_FIT_ATTEMPTS,
    EncodeAttempt,
    EncoderOptions,
    EncodeResult,
    build_commands,
    encode_document,
    encode_normalized,
    encode_svg,
    fit_document,
)
from .entities import (
    ArcTo,
    Close,
    Color,
    ColorEncoding,
    CommandId,
    CoordinateRange,
    CubicTo,
    DrawLineLoop,
    DrawLinePath,
    DrawLines,
    DrawLineStrip,
    EndDocument,
    FillPath,
    FillPolygon,
    FillRectangles,
    FlatStyle,
    Header,
    HorizontalTo,
    Line,
    LinearGradientStyle,
    LineTo,
    MoveTo,
    OutlineFillPath,
    OutlineFillPolygon,
    OutlineFillRectangles,
    QuadTo,
    RadialGradientStyle,
    Rect,
    SegmentKind,
    StyleKind,
    Subpath,
    TvgDocument,
    VerticalTo,
)
from .errors import (
    ColorIndexOutOfRangeError,
    DecodeError,
    EmptyColorTableError,
    EncodeError,
    InvalidMagicOrVersionError,
    PathSyntaxError,
    TinyVGError,
    UnexpectedEndOfStreamError,
    UnitRangeError,
    UnknownStyleKindError,
    UnsupportedColorFormatError,
    UnsupportedCommandError,
    UnsupportedPathSegmentError,
)
from .geometry import COLOR_TOLERANCE, colors_match, split_subpaths
from .logging import ConversionLog, report
from .normalize import NormalizedDocument, normalize
from .reader import ByteCursor
from .sink import DrawingSink, RecordingSink, ResolvedGradient
from .svg_path import SvgPathParser, format_svg_path, parse_svg_path
from .svg_reader import SvgDocumentTree, read_svg
from .svg_render import SvgRenderSink, render_svg
from .units import MAX_SCALE_BITS, select_scale_bits
from .writer import MAX_OUTLINE_COUNT, TextWriter, TvgWriter, write_document, write_text_document

__all__ = [
    "NAMED_COLORS",
    "parse_color",
    "translate_color",
    "MAGIC",
    "VERSION",
    "CommandDecoder",
    "decode",
    "draw_command",
    "open_document",
    "read_dimensions",
    "render",
    "render_document",
    "resolve_style",
    "MAX_FIT_ATTEMPTS",
    "EncodeAttempt",
    "EncoderOptions",
    "EncodeResult",
    "build_commands",
    "encode_document",
    "encode_normalized",
    "encode_svg",
    "fit_document",
    "ArcTo",
    "Close",
    "Color",
    "ColorEncoding",
    "CommandId",
    "CoordinateRange",
    "CubicTo",
    "DrawLineLoop",
    "DrawLinePath",
    "DrawLines",
    "DrawLineStrip",
    "EndDocument",
    "FillPath",
    "FillPolygon",
    "FillRectangles",
    "FlatStyle",
    "Header",
    "HorizontalTo",
    "Line",
    "LinearGradientStyle",
    "LineTo",
    "MoveTo",
    "OutlineFillPath",
    "OutlineFillPolygon",
    "OutlineFillRectangles",
    "QuadTo",
    "RadialGradientStyle",
    "Rect",
    "SegmentKind",
    "StyleKind",
    "Subpath",
    "TvgDocument",
    "VerticalTo",
    "ColorIndexOutOfRangeError",
    "DecodeError",
    "EmptyColorTableError",
    "EncodeError",
    "InvalidMagicOrVersionError",
    "PathSyntaxError",
    "TinyVGError",
    "UnexpectedEndOfStreamError",
    "UnitRangeError",
    "UnknownStyleKindError",
    "UnsupportedColorFormatError",
    "UnsupportedCommandError",
    "UnsupportedPathSegmentError",
    "COLOR_TOLERANCE",
    "colors_match",
    "split_subpaths",
    "ConversionLog",
    "report",
    "NormalizedDocument",
    "normalize",
    "ByteCursor",
    "DrawingSink",
    "RecordingSink",
    "ResolvedGradient",
    "SvgPathParser",
    "format_svg_path",
    "parse_svg_path",
    "SvgDocumentTree",
    "read_svg",
    "SvgRenderSink",
    "render_svg",
    "MAX_SCALE_BITS",
    "select_scale_bits",
    "MAX_OUTLINE_COUNT",
    "TextWriter",
    "TvgWriter",
    "write_document",
    "write_text_document",
]
