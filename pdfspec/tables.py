"""
Table layout
------------
Fixed-height rows, header band, alternating body shading, and the table's own
page breaking: a row that would cross the bottom margin moves to a new page
before anything of it is drawn.
"""
from collections.abc import Mapping

from pdfspec.log import get_logger
from pdfspec.spec import DEFAULT_BOLD_FONT, DEFAULT_COLOR, LINK_COLOR
from pdfspec.surface import TextStyle
from pdfspec.units import to_pt, to_pt_or

LOGGER = get_logger(__name__)

TABLE_FONT_SIZE = 10
CELL_PADDING = 5
HEADER_BG = "#4472C4"
HEADER_FG = "#FFFFFF"
ALT_ROW_BG = "#F2F2F2"
GRID_COLOR = "#CCCCCC"
GRID_WIDTH = 0.5
FALLBACK_COL_W = 100.0
TABLE_GAP = 5


def _str(value):
    return "" if value is None else str(value)


def _sequence(value):
    return value if isinstance(value, (list, tuple)) else []


def row_cells(row):
    """Cells of a body row: sequences as-is, mappings by value order."""
    if row is None:
        return []
    if isinstance(row, Mapping):
        return list(row.values())
    if isinstance(row, (list, tuple)):
        return list(row)
    return [row]


def cell_parts(cell):
    """(text, link, color) for a plain or ``{text, link, color}`` cell."""
    if isinstance(cell, Mapping):
        return _str(cell.get("text")), cell.get("link") or None, cell.get("color")
    return _str(cell), None, None


def column_widths(el, ncols, available):
    """Explicit ``columnWidths`` (padded for short lists) or an even split."""
    if ncols == 0:
        return []
    given = el.get("columnWidths")
    if isinstance(given, (list, tuple)) and given:
        widths = [to_pt(w) for w in given[:ncols]]
        widths += [FALLBACK_COL_W] * (ncols - len(widths))
        return [w if w > 0 else FALLBACK_COL_W for w in widths]
    return [available / ncols] * ncols


class TableLayout:
    """Resolved geometry and styling for one ``table`` element."""

    def __init__(self, el, ctx, body_font):
        self.headers = [_str(h) for h in _sequence(el.get("headers"))]
        self.rows = [row_cells(r) for r in _sequence(el.get("rows"))]
        self.ncols = len(self.headers) or max((len(r) for r in self.rows), default=0)

        self.x = to_pt(el["x"]) if el.get("x") is not None else ctx.x
        self.widths = column_widths(el, self.ncols, ctx.right - self.x)
        self.total_w = sum(self.widths)

        size = to_pt_or(el.get("fontSize"), TABLE_FONT_SIZE)
        if size <= 0:
            size = TABLE_FONT_SIZE
        self.padding = to_pt_or(el.get("cellPadding"), CELL_PADDING)
        row_h = to_pt(el.get("rowHeight"))
        self.row_h = row_h if row_h > 0 else size + self.padding * 2 + 4

        self.header_style = TextStyle(el.get("headerFont") or DEFAULT_BOLD_FONT, size,
                                      el.get("headerColor") or HEADER_FG)
        self.body_style = TextStyle(el.get("bodyFont") or body_font, size,
                                    el.get("bodyColor") or DEFAULT_COLOR)
        self.header_bg = el.get("headerBackground") or HEADER_BG
        self.alt_bg = el.get("alternateRowBackground") or ALT_ROW_BG
        self.grid = el.get("gridLines", True)
        self.grid_color = el.get("gridColor") or GRID_COLOR
        self.repeat_header = bool(el.get("repeatHeader"))

    def col_x(self, ci):
        return self.x + sum(self.widths[:ci])


def render_table(ctx, el, body_font):
    t = TableLayout(el, ctx, body_font)
    s = ctx.surface
    if t.ncols == 0:
        return

    if t.headers:
        if t.rows:
            # header stays with the first body row
            ctx.ensure_space(t.row_h * 2)
        _draw_header(s, t, ctx.y)
        ctx.y += t.row_h

    for ri, row in enumerate(t.rows):
        if ctx.y + t.row_h > ctx.bottom and ctx.y > ctx.top:
            ctx.new_page()
            LOGGER.debug("Table row %d moved to page %d", ri, ctx.page + 1)
            if t.repeat_header and t.headers:
                _draw_header(s, t, ctx.y)
                ctx.y += t.row_h
        _draw_row(s, t, ri, row, ctx.y)
        ctx.y += t.row_h

    if t.grid is not False and t.grid is not None:
        s.stroke_line(t.x, ctx.y, t.x + t.total_w, ctx.y, t.grid_color, GRID_WIDTH)

    ctx.x = ctx.left
    ctx.advance(TABLE_GAP)


def _draw_header(s, t, y):
    s.fill_rect(t.x, y, t.total_w, t.row_h, t.header_bg)
    for ci in range(t.ncols):
        label = t.headers[ci] if ci < len(t.headers) else ""
        _draw_cell_text(s, t, label, ci, y, t.header_style)
    if t.grid == "all":
        _draw_cell_grid(s, t, y)


def _draw_row(s, t, ri, row, y):
    if ri % 2 == 1:
        s.fill_rect(t.x, y, t.total_w, t.row_h, t.alt_bg)
    for ci in range(t.ncols):
        text, link, color = cell_parts(row[ci] if ci < len(row) else None)
        style = t.body_style
        if link:
            style = style.replace(color=color or LINK_COLOR, underline=True)
        elif color:
            style = style.replace(color=color)
        _draw_cell_text(s, t, text, ci, y, style)
        if link:
            s.add_link(t.col_x(ci), y, t.widths[ci], t.row_h, link)
    if t.grid == "all":
        _draw_cell_grid(s, t, y)


def _draw_cell_text(s, t, text, ci, y, style):
    inner_w = t.widths[ci] - t.padding * 2
    if not text or inner_w <= 0:
        return
    line = s.fit(text, style.font, style.size, inner_w)
    if line:
        s.place_line(line, t.col_x(ci) + t.padding, y + t.padding, inner_w, style)


def _draw_cell_grid(s, t, y):
    for ci in range(t.ncols):
        s.stroke_rect(t.col_x(ci), y, t.widths[ci], t.row_h, t.grid_color, GRID_WIDTH)
