"""SVG color specs (named colors, hex and ``rgb()`` forms) to :class:`Color`."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .entities import Color

# https://drafts.csswg.org/css-color/#named-colors
_NAMED_RGB: Dict[str, Tuple[int, int, int]] = {
    "aliceblue": (240, 248, 255),
    "antiquewhite": (250, 235, 215),
    "aqua": (0, 255, 255),
    "aquamarine": (127, 255, 212),
    "azure": (240, 255, 255),
    "beige": (245, 245, 220),
    "bisque": (255, 228, 196),
    "black": (0, 0, 0),
    "blanchedalmond": (255, 235, 205),
    "blue": (0, 0, 255),
    "blueviolet": (138, 43, 226),
    "brown": (165, 42, 42),
    "burlywood": (222, 184, 135),
    "cadetblue": (95, 158, 160),
    "chartreuse": (127, 255, 0),
    "chocolate": (210, 105, 30),
    "coral": (255, 127, 80),
    "cornflowerblue": (100, 149, 237),
    "cornsilk": (255, 248, 220),
    "crimson": (220, 20, 60),
    "cyan": (0, 255, 255),
    "darkblue": (0, 0, 139),
    "darkcyan": (0, 139, 139),
    "darkgoldenrod": (184, 134, 11),
    "darkgray": (169, 169, 169),
    "darkgreen": (0, 100, 0),
    "darkgrey": (169, 169, 169),
    "darkkhaki": (189, 183, 107),
    "darkmagenta": (139, 0, 139),
    "darkolivegreen": (85, 107, 47),
    "darkorange": (255, 140, 0),
    "darkorchid": (153, 50, 204),
    "darkred": (139, 0, 0),
    "darksalmon": (233, 150, 122),
    "darkseagreen": (143, 188, 143),
    "darkslateblue": (72, 61, 139),
    "darkslategray": (47, 79, 79),
    "darkslategrey": (47, 79, 79),
    "darkturquoise": (0, 206, 209),
    "darkviolet": (148, 0, 211),
    "deeppink": (255, 20, 147),
    "deepskyblue": (0, 191, 255),
    "dimgray": (105, 105, 105),
    "dimgrey": (105, 105, 105),
    "dodgerblue": (30, 144, 255),
    "firebrick": (178, 34, 34),
    "floralwhite": (255, 250, 240),
    "forestgreen": (34, 139, 34),
    "fuchsia": (255, 0, 255),
    "gainsboro": (220, 220, 220),
    "ghostwhite": (248, 248, 255),
    "gold": (255, 215, 0),
    "goldenrod": (218, 165, 32),
    "gray": (128, 128, 128),
    "green": (0, 128, 0),
    "greenyellow": (173, 255, 47),
    "grey": (128, 128, 128),
    "honeydew": (240, 255, 240),
    "hotpink": (255, 105, 180),
    "indianred": (205, 92, 92),
    "indigo": (75, 0, 130),
    "ivory": (255, 255, 240),
    "khaki": (240, 230, 140),
    "lavender": (230, 230, 250),
    "lavenderblush": (255, 240, 245),
    "lawngreen": (124, 252, 0),
    "lemonchiffon": (255, 250, 205),
    "lightblue": (173, 216, 230),
    "lightcoral": (240, 128, 128),
    "lightcyan": (224, 255, 255),
    "lightgoldenrodyellow": (250, 250, 210),
    "lightgray": (211, 211, 211),
    "lightgreen": (144, 238, 144),
    "lightgrey": (211, 211, 211),
    "lightpink": (255, 182, 193),
    "lightsalmon": (255, 160, 122),
    "lightseagreen": (32, 178, 170),
    "lightskyblue": (135, 206, 250),
    "lightslategray": (119, 136, 153),
    "lightslategrey": (119, 136, 153),
    "lightsteelblue": (176, 196, 222),
    "lightyellow": (255, 255, 224),
    "lime": (0, 255, 0),
    "limegreen": (50, 205, 50),
    "linen": (250, 240, 230),
    "magenta": (255, 0, 255),
    "maroon": (128, 0, 0),
    "mediumaquamarine": (102, 205, 170),
    "mediumblue": (0, 0, 205),
    "mediumorchid": (186, 85, 211),
    "mediumpurple": (147, 112, 219),
    "mediumseagreen": (60, 179, 113),
    "mediumslateblue": (123, 104, 238),
    "mediumspringgreen": (0, 250, 154),
    "mediumturquoise": (72, 209, 204),
    "mediumvioletred": (199, 21, 133),
    "midnightblue": (25, 25, 112),
    "mintcream": (245, 255, 250),
    "mistyrose": (255, 228, 225),
    "moccasin": (255, 228, 181),
    "navajowhite": (255, 222, 173),
    "navy": (0, 0, 128),
    "oldlace": (253, 245, 230),
    "olive": (128, 128, 0),
    "olivedrab": (107, 142, 35),
    "orange": (255, 165, 0),
    "orangered": (255, 69, 0),
    "orchid": (218, 112, 214),
    "palegoldenrod": (238, 232, 170),
    "palegreen": (152, 251, 152),
    "paleturquoise": (175, 238, 238),
    "palevioletred": (219, 112, 147),
    "papayawhip": (255, 239, 213),
    "peachpuff": (255, 218, 185),
    "peru": (205, 133, 63),
    "pink": (255, 192, 203),
    "plum": (221, 160, 221),
    "powderblue": (176, 224, 230),
    "purple": (128, 0, 128),
    "rebeccapurple": (102, 51, 153),
    "red": (255, 0, 0),
    "rosybrown": (188, 143, 143),
    "royalblue": (65, 105, 225),
    "saddlebrown": (139, 69, 19),
    "salmon": (250, 128, 114),
    "sandybrown": (244, 164, 96),
    "seagreen": (46, 139, 87),
    "seashell": (255, 245, 238),
    "sienna": (160, 82, 45),
    "silver": (192, 192, 192),
    "skyblue": (135, 206, 235),
    "slateblue": (106, 90, 205),
    "slategray": (112, 128, 144),
    "slategrey": (112, 128, 144),
    "snow": (255, 250, 250),
    "springgreen": (0, 255, 127),
    "steelblue": (70, 130, 180),
    "tan": (210, 180, 140),
    "teal": (0, 128, 128),
    "thistle": (216, 191, 216),
    "tomato": (255, 99, 71),
    "turquoise": (64, 224, 208),
    "violet": (238, 130, 238),
    "wheat": (245, 222, 179),
    "white": (255, 255, 255),
    "whitesmoke": (245, 245, 245),
    "yellow": (255, 255, 0),
    "yellowgreen": (154, 205, 5),
}

NAMED_COLORS: Mapping[str, Color] = MappingProxyType(
    {name: Color.from_rgba8(r, g, b) for name, (r, g, b) in _NAMED_RGB.items()}
)

# magenta marks colors that could not be translated
PLACEHOLDER = Color(1.0, 0.0, 1.0, 1.0)
TRANSPARENT = Color(0.0, 0.0, 0.0, 0.0)

_SPECIAL = MappingProxyType(
    {
        "#value_dark": Color(0.0, 0.0, 0.0),
        "#value_middle": Color(0.5, 0.5, 0.5),
        "#value_light": Color(1.0, 1.0, 1.0),
        "transparent": TRANSPARENT,
    }
)

_FUNCTIONAL = re.compile(r"^(rgba?)\(\s*([^)]*)\)$")


def _scale_hex(value: int, digits: int) -> int:
    if digits == 1:
        return value | (value << 4)
    if digits == 2:
        return value
    return int(value * (256 / 16**digits))


def _parse_hex(text: str) -> Color | None:
    digits = text[1:]
    if not digits or any(ch not in "0123456789abcdefABCDEF" for ch in digits):
        return None
    if len(digits) % 3 == 0:
        width, has_alpha = len(digits) // 3, False
    elif len(digits) % 4 == 0:
        width, has_alpha = len(digits) // 4, True
    else:
        return None
    channels = [
        _scale_hex(int(digits[idx : idx + width], 16), width)
        for idx in range(0, len(digits), width)
    ]
    if not has_alpha:
        channels.append(255)
    return Color.from_rgba8(*channels)


def _parse_channel(token: str) -> float | None:
    token = token.strip()
    try:
        if token.endswith("%"):
            return max(0.0, min(1.0, float(token[:-1]) / 100.0))
        return max(0.0, min(1.0, float(token) / 255.0))
    except ValueError:
        return None


def _parse_functional(text: str) -> Color | None:
    match = _FUNCTIONAL.match(text)
    if match is None:
        return None
    parts = [part for part in re.split(r"[\s,/]+", match.group(2).strip()) if part]
    if len(parts) not in (3, 4):
        return None
    channels = [_parse_channel(part) for part in parts[:3]]
    if any(ch is None for ch in channels):
        return None
    alpha = 1.0
    if len(parts) == 4:
        try:
            alpha_text = parts[3]
            alpha = float(alpha_text[:-1]) / 100.0 if alpha_text.endswith("%") else float(alpha_text)
        except ValueError:
            return None
        alpha = max(0.0, min(1.0, alpha))
    r, g, b = channels
    return Color(r, g, b, alpha)


def parse_color(text: str) -> Color | None:
    """Translate an SVG color spec; ``None`` when the spec is not understood."""

    spec = text.strip()
    named = NAMED_COLORS.get(spec.lower())
    if named is not None:
        return named
    special = _SPECIAL.get(spec.lower())
    if special is not None:
        return special
    if spec.startswith("#"):
        return _parse_hex(spec)
    return _parse_functional(spec.lower())


def translate_color(text: str, opacity: float = 1.0) -> Tuple[Color, bool]:
    """
    Color for ``text`` with its alpha scaled by ``opacity``. The flag is False
    when the color spec could not be translated and the placeholder was used.
    """

    color = parse_color(text)
    ok = color is not None
    if color is None:
        color = PLACEHOLDER
    return color.with_alpha(color.a * opacity), ok
