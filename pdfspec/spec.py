"""
Document specification model
----------------------------
A specification is plain JSON-style data::

    {"size": "A4", "margins": {...}, "meta": {...}, "pageNumbers": {...},
     "elements": [{"type": "heading", "value": "Invoice #1"}, ...]}

Element nodes stay plain mappings; ``Kind`` is the closed set the dispatcher
switches on.
"""
from enum import Enum
from collections.abc import Mapping

from reportlab.lib import pagesizes

from pdfspec.errors import SpecError
from pdfspec.units import to_pt, to_pt_or


# ── defaults ──────────────────────────────────────────────────────────────────
DEFAULT_SIZE = "A4"
DEFAULT_MARGIN = 50.0
DEFAULT_FONT = "Helvetica"
DEFAULT_BOLD_FONT = "Helvetica-Bold"
DEFAULT_FONT_SIZE = 12
DEFAULT_COLOR = "#000000"
LINK_COLOR = "#1a0dab"
LINE_FACTOR = 1.2

HEADING_SIZES = {1: 26, 2: 22, 3: 18, 4: 16, 5: 14, 6: 12}
HEADING_FALLBACK_SIZE = 18

PAGE_NUMBER_PREFIX = "Page "
PAGE_NUMBER_SIZE = 10
PAGE_NUMBER_COLOR = "#888888"
PAGE_NUMBER_OFFSET = 15.0

META_FIELDS = ("title", "author", "subject", "keywords", "creator", "producer")


# ── element kinds ─────────────────────────────────────────────────────────────
class Kind(str, Enum):
    TEXT = "text"
    HEADING = "heading"
    LINK = "link"
    STEALTH_LINK = "stealthLink"
    LIST = "list"
    TABLE = "table"
    IMAGE = "image"
    DIVIDER = "divider"
    SPACER = "spacer"
    RECT = "rect"
    COLUMNS = "columns"
    OVERLAY = "overlay"
    PAGE_BREAK = "pageBreak"
    UNKNOWN = "?"

    @classmethod
    def of(cls, element):
        """Kind of an element node; anything unrecognised is UNKNOWN."""
        if not isinstance(element, Mapping):
            return cls.UNKNOWN
        tag = element.get("type")
        if not isinstance(tag, str) or tag == cls.UNKNOWN.value:
            return cls.UNKNOWN
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


# ── page geometry ─────────────────────────────────────────────────────────────
def page_size(value, layout=None):
    """Resolve a named reportlab page size or a [w, h] pair to points."""
    if value is None or value == "":
        value = DEFAULT_SIZE
    if isinstance(value, str):
        size = getattr(pagesizes, value.strip().upper(), None)
        if not (isinstance(size, tuple) and len(size) == 2):
            raise SpecError(f"Unknown page size: {value!r}")
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        size = (to_pt(value[0]), to_pt(value[1]))
        if size[0] <= 0 or size[1] <= 0:
            raise SpecError(f"Page size must be positive: {value!r}")
    else:
        raise SpecError(f"Unsupported page size: {value!r}")
    if layout == "landscape":
        return pagesizes.landscape(size)
    if layout == "portrait":
        return pagesizes.portrait(size)
    return (float(size[0]), float(size[1]))


class Margins:
    def __init__(self, top=DEFAULT_MARGIN, bottom=DEFAULT_MARGIN, left=DEFAULT_MARGIN, right=DEFAULT_MARGIN):
        self.top = top
        self.bottom = bottom
        self.left = left
        self.right = right

    @classmethod
    def parse(cls, value, fallback=None):
        base = fallback or cls()
        if value is None:
            return cls(base.top, base.bottom, base.left, base.right)
        if isinstance(value, (int, float, str)) and not isinstance(value, bool):
            m = to_pt(value)
            return cls(m, m, m, m)
        if not isinstance(value, Mapping):
            raise SpecError(f"Margins must be a number or a mapping, got {type(value).__name__}")
        return cls(
            to_pt_or(value.get("top"), base.top),
            to_pt_or(value.get("bottom"), base.bottom),
            to_pt_or(value.get("left"), base.left),
            to_pt_or(value.get("right"), base.right),
        )

    def __eq__(self, other):
        return isinstance(other, Margins) and self.as_tuple() == other.as_tuple()

    def as_tuple(self):
        return (self.top, self.bottom, self.left, self.right)

    def __repr__(self):
        return "Margins(top=%g, bottom=%g, left=%g, right=%g)" % self.as_tuple()


class PageNumbers:
    def __init__(self, prefix=PAGE_NUMBER_PREFIX, align="center", font_size=PAGE_NUMBER_SIZE,
                 color=PAGE_NUMBER_COLOR, font=None, offset=PAGE_NUMBER_OFFSET):
        self.prefix = prefix
        self.align = align
        self.font_size = font_size
        self.color = color
        self.font = font
        self.offset = offset

    @classmethod
    def parse(cls, value):
        """None when numbering is not requested; an empty mapping means defaults."""
        if value is None or value is False or value == 0:
            return None
        if not isinstance(value, Mapping):
            return cls()
        prefix = value.get("prefix")
        return cls(
            prefix=PAGE_NUMBER_PREFIX if prefix is None else str(prefix),
            align=value.get("align") or "center",
            font_size=to_pt_or(value.get("fontSize"), PAGE_NUMBER_SIZE),
            color=value.get("color") or PAGE_NUMBER_COLOR,
            font=value.get("font"),
            offset=to_pt_or(value.get("offset"), PAGE_NUMBER_OFFSET),
        )

    def label(self, index, total):
        return f"{self.prefix}{index + 1} of {total}"


# ── document ──────────────────────────────────────────────────────────────────
class DocumentSpec:
    """Parsed, read-only view of a specification root."""

    def __init__(self, size, margins, meta, page_numbers, elements):
        self.size = size
        self.margins = margins
        self.meta = meta
        self.page_numbers = page_numbers
        self.elements = elements

    @classmethod
    def from_dict(cls, data, size=None, margins=None):
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise SpecError(f"Document specification must be a mapping, got {type(data).__name__}")

        elements = data.get("elements")
        if elements is None:
            elements = data.get("content")
        if elements is None:
            elements = []
        if not isinstance(elements, (list, tuple)):
            raise SpecError("'elements' must be a list")

        meta = data.get("meta") or data.get("info") or {}
        if not isinstance(meta, Mapping):
            raise SpecError("'meta' must be a mapping")
        meta = {k: str(meta[k]) for k in META_FIELDS if meta.get(k) is not None}

        return cls(
            size=page_size(data.get("size") or size, data.get("layout")),
            margins=Margins.parse(data.get("margins"), margins),
            meta=meta,
            page_numbers=PageNumbers.parse(data.get("pageNumbers")),
            elements=tuple(elements),
        )

    @property
    def width(self):
        return self.size[0]

    @property
    def height(self):
        return self.size[1]
