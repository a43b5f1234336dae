"""
Element renderers
-----------------
One method per element kind. Each takes the layout context (``Cursor``) and
an element mapping, draws through the context's surface, and leaves the
cursor where the next element starts.
"""
import math
import random
from collections.abc import Mapping

from pdfspec.log import get_logger
from pdfspec.spec import (
    DEFAULT_BOLD_FONT, DEFAULT_COLOR, DEFAULT_FONT, DEFAULT_FONT_SIZE,
    HEADING_FALLBACK_SIZE, HEADING_SIZES, LINK_COLOR, Kind,
)
from pdfspec.surface import Box, TextStyle
from pdfspec.tables import render_table
from pdfspec.units import to_pt, to_pt_or

LOGGER = get_logger(__name__)

ALIGNS = ("left", "center", "right", "justify")
BULLET = "• "
LIST_INDENT = 15
DIVIDER_COLOR = "#CCCCCC"
DIVIDER_SPACING = 10
COLUMN_GAP = 20

OVERLAY_HEIGHT = 200
OVERLAY_BARS = 6
OVERLAY_BAR_H = 8
OVERLAY_BAR_COLOR = "#E0E0E0"
OVERLAY_COLOR = "#FFFFFF"
OVERLAY_OPACITY = 0.85
OVERLAY_LABEL = "Click to View"
OVERLAY_LABEL_SIZE = 18
OVERLAY_GAP = 10


# ── attribute helpers ─────────────────────────────────────────────────────────
def _str(value):
    return "" if value is None else str(value)


def _positive(value, default):
    v = to_pt_or(value, default)
    return v if v > 0 and math.isfinite(v) else float(default)


def _number(value, default):
    if value is None or isinstance(value, bool):
        return default
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default


def _align(el):
    a = el.get("align")
    return a if a in ALIGNS else "left"


def _children(col):
    if isinstance(col, Mapping):
        items = col.get("elements")
        if items is None:
            items = col.get("content")
        return items if isinstance(items, (list, tuple)) else []
    if isinstance(col, (list, tuple)):
        return col
    return []


def image_box(nat_w, nat_h, el):
    """(width, height, dx, dy, frame_h) of an image inside its layout frame."""
    fit = el.get("fit")
    if isinstance(fit, (list, tuple)) and len(fit) == 2:
        fw, fh = to_pt(fit[0]), to_pt(fit[1])
        scale = min(fw / nat_w, fh / nat_h)
        w, h = nat_w * scale, nat_h * scale
        dx = {"center": (fw - w) / 2.0, "right": fw - w}.get(el.get("align"), 0.0)
        dy = {"center": (fh - h) / 2.0, "bottom": fh - h}.get(el.get("valign"), 0.0)
        return w, h, dx, dy, fh
    w, h = to_pt(el.get("width")), to_pt(el.get("height"))
    if w > 0 and h <= 0:
        h = nat_h * w / nat_w
    elif h > 0 and w <= 0:
        w = nat_w * h / nat_h
    elif w <= 0 and h <= 0:
        w, h = float(nat_w), float(nat_h)
    return w, h, 0.0, 0.0, h


# ── renderer ──────────────────────────────────────────────────────────────────
class ElementRenderer:
    """Element renderers for one render session."""

    def __init__(self, font=DEFAULT_FONT, font_size=DEFAULT_FONT_SIZE, rng=None):
        self.font = font
        self.font_size = font_size
        self.rng = rng if rng is not None else random.Random()
        self._handlers = {
            Kind.TEXT: self.text,
            Kind.HEADING: self.heading,
            Kind.LINK: self.link,
            Kind.STEALTH_LINK: self.stealth_link,
            Kind.LIST: self.list,
            Kind.TABLE: self.table,
            Kind.IMAGE: self.image,
            Kind.DIVIDER: self.divider,
            Kind.SPACER: self.spacer,
            Kind.RECT: self.rect,
            Kind.COLUMNS: self.columns,
            Kind.OVERLAY: self.overlay,
            Kind.PAGE_BREAK: self.page_break,
            Kind.UNKNOWN: self.skip,
        }

    def dispatch(self, ctx, el):
        kind = Kind.of(el)
        self._handlers[kind](ctx, el)
        return kind

    def skip(self, ctx, el):
        tag = el.get("type") if isinstance(el, Mapping) else type(el).__name__
        LOGGER.debug("Skipping element of unknown type %r", tag)

    # ── shared text flow ──────────────────────────────────────────────────────
    def style(self, el, font=None, size=None, color=None):
        underline = el.get("underline")
        return TextStyle(
            font=el.get("font") or font or self.font,
            size=_positive(el.get("fontSize"), size or self.font_size),
            color=el.get("color") or color or DEFAULT_COLOR,
            underline=bool(underline),
            strike=bool(el.get("strike")),
            line_gap=to_pt(el.get("lineGap")),
        )

    def text_width(self, ctx, el):
        room = ctx.right - ctx.x
        w = to_pt(el.get("width"))
        return min(w, room) if w > 0 else room

    def write(self, ctx, text, style, width, align="left", link=None, indent=0.0):
        """Flow wrapped text from the cursor, breaking pages between lines.

        Returns one Box per page the text touched.
        """
        s = ctx.surface
        lines = s.wrap_lines(text, style.font, style.size, width - indent)
        lh = style.line_height
        x = ctx.x
        boxes = []
        top = ctx.y
        for line, last in lines:
            if not ctx.fits(lh) and ctx.y > ctx.top:
                if ctx.y > top:
                    boxes.append(Box(ctx.page, x, top, width, ctx.y - top))
                ctx.new_page()
                top = ctx.y
            lx, lw = s.place_line(line, x + indent, ctx.y, width - indent, style, align, last=last)
            if link:
                s.add_link(lx, ctx.y, lw, lh, link)
            ctx.y += lh
        if ctx.y > top:
            boxes.append(Box(ctx.page, x, top, width, ctx.y - top))
        ctx.x = x
        # a line taller than the content area still ends at the bottom margin
        ctx.y = min(ctx.y, ctx.bottom)
        return boxes

    def move_down(self, ctx, el, style, default=0.0):
        lines = _number(el.get("moveDown"), default)
        if lines > 0:
            ctx.advance(lines * style.line_height)

    # ── text-like elements ────────────────────────────────────────────────────
    def text(self, ctx, el):
        style = self.style(el)
        self.write(ctx, _str(el.get("value")), style, self.text_width(ctx, el), _align(el),
                   link=el.get("link") or el.get("url"), indent=to_pt(el.get("indent")))
        self.move_down(ctx, el, style)

    def heading(self, ctx, el):
        level = int(_number(el.get("level"), 1))
        size = HEADING_SIZES.get(level, HEADING_FALLBACK_SIZE)
        style = self.style(el, font=DEFAULT_BOLD_FONT, size=size)
        self.write(ctx, _str(el.get("value")), style, self.text_width(ctx, el), _align(el),
                   link=el.get("link") or el.get("url"))
        self.move_down(ctx, el, style, default=0.5)

    def link(self, ctx, el):
        if el.get("stealth"):
            return self.stealth_link(ctx, el)
        url = el.get("url") or el.get("link")
        style = self.style(el, color=LINK_COLOR)
        style.underline = True
        self.write(ctx, _str(el.get("value") or url), style, self.text_width(ctx, el), _align(el),
                   link=url)
        self.move_down(ctx, el, style)

    def stealth_link(self, ctx, el):
        """Plain text run, then a separate annotation over the space it used.

        The URL never reaches the text-drawing call.
        """
        url = el.get("url")
        style = self.style(el)
        width = self.text_width(ctx, el)
        boxes = self.write(ctx, _str(el.get("value")), style, width, _align(el))
        if url:
            s = ctx.surface
            current = s.page
            for box in boxes:
                if box.page != s.page:
                    s.switch_to_page(box.page)
                s.add_link(box.x, box.y, box.width, box.height, url)
            if s.page != current:
                s.switch_to_page(current)
        self.move_down(ctx, el, style)

    def list(self, ctx, el):
        style = self.style(el)
        items = el.get("items")
        if not isinstance(items, (list, tuple)):
            items = []
        ordered = bool(el.get("ordered"))
        indent = to_pt_or(el.get("indent"), LIST_INDENT)
        width = self.text_width(ctx, el)
        align = _align(el)
        for i, item in enumerate(items):
            prefix = f"{i + 1}. " if ordered else BULLET
            if isinstance(item, Mapping):
                link = item.get("link") or None
                item_style = style.replace(underline=True) if link else style
                self.write(ctx, prefix + _str(item.get("text")), item_style, width, align,
                           link=link, indent=indent)
            else:
                self.write(ctx, prefix + _str(item), style, width, align, indent=indent)
        self.move_down(ctx, el, style, default=0.5)

    # ── geometry-only elements ────────────────────────────────────────────────
    def divider(self, ctx, el):
        x = to_pt(el["x"]) if el.get("x") is not None else ctx.left
        w = to_pt(el.get("width")) or (ctx.right - x)
        ctx.surface.stroke_line(x, ctx.y, x + w, ctx.y, el.get("color") or DIVIDER_COLOR,
                                _positive(el.get("thickness"), 1))
        ctx.advance(to_pt_or(el.get("spacing"), DIVIDER_SPACING))

    def spacer(self, ctx, el):
        lines = _number(el.get("lines"), 1)
        ctx.advance(lines * TextStyle(self.font, self.font_size).line_height)

    def rect(self, ctx, el):
        s = ctx.surface
        x, y = to_pt(el.get("x")), to_pt(el.get("y"))
        w, h = to_pt(el.get("width")), to_pt(el.get("height"))
        if el.get("fill"):
            s.fill_rect(x, y, w, h, el["fill"])
        if el.get("stroke"):
            s.stroke_rect(x, y, w, h, el["stroke"], _positive(el.get("lineWidth"), 1))
        if el.get("link"):
            s.add_link(x, y, w, h, el["link"])

    def image(self, ctx, el):
        s = ctx.surface
        src = el.get("src")
        nat_w, nat_h = s.image_size(src)
        w, h, dx, dy, frame_h = image_box(nat_w, nat_h, el)
        flowing = el.get("x") is None or el.get("y") is None
        if flowing:
            ctx.ensure_space(frame_h)
            x, y = ctx.x, ctx.y
        else:
            x, y = to_pt(el["x"]), to_pt(el["y"])
        s.place_image(src, x + dx, y + dy, w, h)
        if el.get("link"):
            s.add_link(x + dx, y + dy, w, h, el["link"])
        if flowing:
            ctx.advance(frame_h)
        self.move_down(ctx, el, self.style(el))

    def page_break(self, ctx, el):
        ctx.new_page()

    # ── composite elements ────────────────────────────────────────────────────
    def table(self, ctx, el):
        render_table(ctx, el, self.font)

    def columns(self, ctx, el):
        cols = el.get("columns")
        if not isinstance(cols, (list, tuple)) or not cols:
            return
        gap = to_pt_or(el.get("gap"), COLUMN_GAP)
        col_w = (ctx.width - gap * (len(cols) - 1)) / len(cols)
        start_y = ctx.y
        max_y = start_y
        for i, col in enumerate(cols):
            child = ctx.column(ctx.left + i * (col_w + gap), col_w)
            for node in _children(col):
                self.dispatch(child, node)
            max_y = max(max_y, child.y)
        # columns overflowing onto a new page are not re-synchronised
        ctx.x = ctx.left
        ctx.y = max_y

    def overlay(self, ctx, el):
        s = ctx.surface
        left, width = ctx.left, ctx.width
        height = _positive(el.get("height"), OVERLAY_HEIGHT)
        ctx.ensure_space(height)
        top = ctx.y

        bars = max(0, min(int(_number(el.get("lines"), OVERLAY_BARS)), int(height / OVERLAY_BAR_H)))
        spacing = height / (bars + 2)
        for i in range(1, bars + 1):
            bar_w = width * (0.4 + self.rng.random() * 0.45)
            s.fill_rect(left, top + spacing * i, bar_w, OVERLAY_BAR_H, el.get("lineColor") or OVERLAY_BAR_COLOR)

        opacity = min(max(_number(el.get("opacity"), OVERLAY_OPACITY), 0.0), 1.0)
        s.fill_rect(left, top, width, height, el.get("color") or OVERLAY_COLOR, opacity=opacity)

        url = el.get("url")
        size = _positive(el.get("labelSize"), OVERLAY_LABEL_SIZE)
        label_style = TextStyle(DEFAULT_BOLD_FONT, size, el.get("labelColor") or LINK_COLOR, underline=True)
        s.place_text(el.get("label") or OVERLAY_LABEL, left, top + height / 2.0 - size / 2.0, width,
                     label_style, align="center", link=url)
        if url:
            s.add_link(left, top, width, height, url)

        ctx.x = ctx.left
        ctx.y = top + height
        ctx.advance(OVERLAY_GAP)
