"""
Reads SVG markup into the small node tree the normalizer works on.

Only the structure is captured here: element kind, merged presentation
attributes (``style="..."`` wins over plain attributes), children, and the
gradient definitions referenced through ``url(#id)``. Anything the TinyVG
encoder cannot express is recorded on the :class:`ConversionLog` and clears
:attr:`SvgDocumentTree.fully_supported`; it never aborts reading.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .colors import translate_color
from .entities import Color
from .logging import ConversionLog

SHAPE_ELEMENTS = frozenset({"path", "rect", "circle", "ellipse", "polygon", "polyline", "line"})
GROUP_ELEMENTS = frozenset({"g", "a", "svg", "switch"})
GRADIENT_ELEMENTS = frozenset({"linearGradient", "radialGradient"})
IGNORED_ELEMENTS = frozenset({"metadata", "title", "desc", "stop"})
UNSUPPORTED_ELEMENTS = frozenset(
    {"use", "symbol", "style", "text", "image", "clipPath", "mask", "pattern", "marker", "filter"}
)

IGNORED_NAMESPACES = ("inkscape", "sodipodi")
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XLINK_HREF = "{http://www.w3.org/1999/xlink}href"

UNSUPPORTED_ATTRIBUTES = frozenset(
    {
        "class",
        "font-weight",
        "letter-spacing",
        "word-spacing",
        "vector-effect",
        "display",
        "preserveAspectRatio",
        "filter",
        "font-size",
        "font-family",
        "font-stretch",
        "text-anchor",
        "baseProfile",
        "enable-background",
        "image-rendering",
        "gradientTransform",
        "mask",
        "clip-path",
    }
)

KNOWN_ATTRIBUTES = frozenset(
    {
        "id",
        "style",
        "transform",
        "fill",
        "opacity",
        "fill-opacity",
        "stroke",
        "stroke-width",
        "stroke-opacity",
        "stroke-miterlimit",
        "stroke-linecap",
        "stroke-linejoin",
        "stroke-dasharray",
        "stroke-dashoffset",
        "fill-rule",
        "clip-rule",
        "color",
        "overflow",
        "shape-rendering",
        "version",
        "viewBox",
        "x",
        "y",
        "width",
        "height",
        "d",
        "rx",
        "ry",
        "r",
        "cx",
        "cy",
        "fx",
        "fy",
        "points",
        "x1",
        "y1",
        "x2",
        "y2",
        "offset",
        "stop-color",
        "stop-opacity",
        "gradientUnits",
        "spreadMethod",
        "href",
        "type",
        "pathLength",
        "visibility",
        "role",
        "focusable",
    }
)


@dataclass
class SvgNode:
    kind: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["SvgNode"] = field(default_factory=list)

    @property
    def element_id(self) -> Optional[str]:
        return self.attributes.get("id")

    @property
    def is_group(self) -> bool:
        return self.kind in GROUP_ELEMENTS

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def iter_nodes(self):
        yield self
        for child in self.children:
            yield from child.iter_nodes()


@dataclass(frozen=True)
class GradientStop:
    offset: float
    color: Color


@dataclass
class SvgGradient:
    kind: str  # "linear" or "radial"
    element_id: str
    attributes: Dict[str, str]
    stops: List[GradientStop]
    href: Optional[str] = None

    @property
    def units(self) -> str:
        return self.attributes.get("gradientUnits", "objectBoundingBox")

    def number(self, name: str, default: float) -> float:
        """Gradient coordinate; percentages become fractions."""

        text = self.attributes.get(name)
        if text is None:
            return default
        return parse_length(text, default)


@dataclass
class SvgDocumentTree:
    root: SvgNode
    width: Optional[str]
    height: Optional[str]
    view_box: Optional[str]
    gradients: Dict[str, SvgGradient] = field(default_factory=dict)
    fully_supported: bool = True


_LENGTH = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*(%|[a-zA-Z]*)\s*$")


def parse_length(text: Optional[str], default: float = 0.0) -> float:
    if text is None:
        return default
    match = _LENGTH.match(text)
    if match is None:
        return default
    value = float(match.group(1))
    if match.group(2) == "%":
        return value / 100.0
    return value


def local_name(tag: str) -> Tuple[Optional[str], str]:
    """Split ``{namespace}name`` into its parts."""

    if tag.startswith("{"):
        namespace, name = tag[1:].split("}", 1)
        return namespace, name
    if ":" in tag:
        prefix, name = tag.split(":", 1)
        return prefix, name
    return None, tag


def parse_style_attribute(text: str) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for declaration in text.split(";"):
        if ":" not in declaration:
            continue
        key, value = declaration.split(":", 1)
        key = key.strip().lower()
        if key:
            properties[key] = value.strip()
    return properties


class SvgReader:
    def __init__(self, log: Optional[ConversionLog] = None) -> None:
        self.log = log if log is not None else ConversionLog()
        self.fully_supported = True
        self.gradients: Dict[str, SvgGradient] = {}

    def _unsupported(self, message: str) -> None:
        self.log.record(message)
        self.fully_supported = False

    def _is_ignored_namespace(self, namespace: Optional[str]) -> bool:
        return namespace is not None and any(token in namespace for token in IGNORED_NAMESPACES)

    def _collect_attributes(self, element: ET.Element) -> Dict[str, str]:
        attributes: Dict[str, str] = {}
        for raw_name, value in element.attrib.items():
            if raw_name == XLINK_HREF:
                attributes["href"] = value
                continue
            namespace, name = local_name(raw_name)
            if namespace == XML_NAMESPACE or namespace == "xml" or self._is_ignored_namespace(namespace):
                continue
            if name.startswith("aria-") or name.startswith("data-"):
                continue
            if name in UNSUPPORTED_ATTRIBUTES:
                self._unsupported(f"Unsupported attribute {name}")
                continue
            if name not in KNOWN_ATTRIBUTES:
                self.log.record(f"Unknown attribute {name}")
                continue
            attributes[name] = value
        style = attributes.pop("style", None)
        if style:
            for name, value in parse_style_attribute(style).items():
                if name in UNSUPPORTED_ATTRIBUTES:
                    self._unsupported(f"Unsupported attribute {name}")
                    continue
                attributes[name] = value
        return attributes

    def _read_gradient(self, element: ET.Element, name: str) -> None:
        attributes = self._collect_attributes(element)
        gradient_id = attributes.get("id")
        if not gradient_id:
            return
        stops: List[GradientStop] = []
        for child in element:
            if local_name(child.tag)[1] != "stop":
                continue
            stop_attributes = self._collect_attributes(child)
            opacity = parse_length(stop_attributes.get("stop-opacity"), 1.0)
            spec = stop_attributes.get("stop-color", "black")
            color, ok = translate_color(spec, opacity)
            if not ok:
                self.log.record(f"Failed to translate color spec '{spec}'")
            stops.append(GradientStop(offset=parse_length(stop_attributes.get("offset"), 0.0), color=color))
        href = attributes.get("href")
        self.gradients[gradient_id] = SvgGradient(
            kind="linear" if name == "linearGradient" else "radial",
            element_id=gradient_id,
            attributes=attributes,
            stops=stops,
            href=href[1:] if href and href.startswith("#") else None,
        )

    def _resolve_gradient_links(self) -> None:
        for gradient in self.gradients.values():
            seen = {gradient.element_id}
            target = gradient.href
            while target and target in self.gradients and target not in seen:
                seen.add(target)
                parent = self.gradients[target]
                if not gradient.stops:
                    gradient.stops = list(parent.stops)
                for key, value in parent.attributes.items():
                    if key != "id":
                        gradient.attributes.setdefault(key, value)
                target = parent.href

    def _read_element(self, element: ET.Element) -> Optional[SvgNode]:
        namespace, name = local_name(element.tag)
        if self._is_ignored_namespace(namespace) or name in IGNORED_ELEMENTS:
            return None
        if name == "defs":
            for child in element:
                self._read_definition(child)
            return None
        if name in GRADIENT_ELEMENTS:
            # collected up front by read()
            return None
        if name in UNSUPPORTED_ELEMENTS:
            self._unsupported(f"Unsupported element {name}")
            return None
        if name not in SHAPE_ELEMENTS and name not in GROUP_ELEMENTS:
            self.log.record(f"Unknown element {name}")
            return None
        node = SvgNode(kind=name, attributes=self._collect_attributes(element))
        transform = node.attributes.get("transform", "")
        if transform.strip():
            self._unsupported(f"Node has unsupported transform: {transform}")
        if node.is_group:
            for child in element:
                child_node = self._read_element(child)
                if child_node is not None:
                    node.children.append(child_node)
        return node

    def _read_definition(self, element: ET.Element) -> None:
        namespace, name = local_name(element.tag)
        if self._is_ignored_namespace(namespace) or name in IGNORED_ELEMENTS:
            return
        if name in GRADIENT_ELEMENTS:
            return
        self._unsupported(f"Unsupported element {name}")

    def read(self, root: ET.Element) -> SvgDocumentTree:
        if local_name(root.tag)[1] != "svg":
            raise ValueError(f"not an SVG document (root element {root.tag!r})")
        # gradients may be referenced before they are defined
        for element in root.iter():
            namespace, name = local_name(element.tag)
            if name in GRADIENT_ELEMENTS and not self._is_ignored_namespace(namespace):
                self._read_gradient(element, name)
        self._resolve_gradient_links()
        document = SvgNode(kind="svg", attributes=self._collect_attributes(root))
        for child in root:
            node = self._read_element(child)
            if node is not None:
                document.children.append(node)
        return SvgDocumentTree(
            root=document,
            width=root.attrib.get("width"),
            height=root.attrib.get("height"),
            view_box=root.attrib.get("viewBox"),
            gradients=self.gradients,
            fully_supported=self.fully_supported,
        )


def read_svg(source: Union[str, bytes, Path], log: Optional[ConversionLog] = None) -> SvgDocumentTree:
    """Parse SVG markup (text, bytes or a file path) into a :class:`SvgDocumentTree`."""

    if isinstance(source, Path):
        source = source.read_bytes()
    root = ET.fromstring(source)
    return SvgReader(log).read(root)
