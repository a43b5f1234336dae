"""
Drawing surface
---------------
Thin layer over a ReportLab canvas. Callers work in top-down page coordinates
(y grows downward from the top edge, like the document specification); the
flip to PDF's bottom-up system happens here and nowhere else.

Pages are buffered in memory until ``finalize`` so that already-laid-out pages
can be revisited (page numbering needs the total page count).
"""
import base64
import binascii
import io
from collections import namedtuple
from pathlib import Path

from PIL import Image as PILImage
from PIL import UnidentifiedImageError
from reportlab.lib import colors
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from pdfspec.errors import AssetError
from pdfspec.log import get_logger
from pdfspec.spec import DEFAULT_COLOR, DEFAULT_FONT, DEFAULT_FONT_SIZE, LINE_FACTOR

LOGGER = get_logger(__name__)

Box = namedtuple("Box", "page x y width height")


# ── buffered canvas ────────────────────────────────────────────────────────────
class BufferedCanvas(canvas.Canvas):
    """Canvas that holds every page until ``flush_pages``.

    A closed page is kept as a snapshot of the canvas state (its content
    stream, annotations, and forms in use). Switching pages swaps snapshots in
    and out; document-wide counters are never rolled back.
    """

    _SHARED = frozenset(("_closed_pages", "_open_page", "_active", "_annotationCount"))

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._closed_pages = []
        self._open_page = None
        self._active = None   # None: the open (last) page is live

    def _snapshot(self):
        return {k: v for k, v in self.__dict__.items() if k not in self._SHARED}

    def buffered_page_count(self):
        return len(self._closed_pages) + 1

    def current_page_index(self):
        return len(self._closed_pages) if self._active is None else self._active

    def switch_to_page(self, index):
        if not 0 <= index < self.buffered_page_count():
            raise IndexError(f"Page {index} out of range (0..{self.buffered_page_count() - 1})")
        if index == self.current_page_index():
            return
        if self._active is None:
            self._open_page = self._snapshot()
        else:
            self._closed_pages[self._active] = self._snapshot()
        if index == len(self._closed_pages):
            self.__dict__.update(self._open_page)
            self._open_page = None
            self._active = None
        else:
            self.__dict__.update(self._closed_pages[index])
            self._active = index

    def showPage(self):
        self.switch_to_page(len(self._closed_pages))
        self._closed_pages.append(self._snapshot())
        self._startPage()

    def flush_pages(self, post=None):
        """Emit every buffered page, calling ``post(index, total)`` on each first."""
        self.switch_to_page(len(self._closed_pages))
        pages = self._closed_pages + [self._snapshot()]
        total = len(pages)
        for i, state in enumerate(pages):
            self.__dict__.update(state)
            if post is not None:
                post(i, total)
            canvas.Canvas.showPage(self)
        self._closed_pages = []
        self._active = None


# ── style ─────────────────────────────────────────────────────────────────────
class TextStyle:
    def __init__(self, font=DEFAULT_FONT, size=DEFAULT_FONT_SIZE, color=DEFAULT_COLOR,
                 underline=False, strike=False, line_gap=0.0):
        self.font = font
        self.size = size
        self.color = color
        self.underline = underline
        self.strike = strike
        self.line_gap = line_gap

    @property
    def line_height(self):
        return self.size * LINE_FACTOR + self.line_gap

    def replace(self, **changes):
        s = TextStyle(self.font, self.size, self.color, self.underline, self.strike, self.line_gap)
        for k, v in changes.items():
            setattr(s, k, v)
        return s


def to_color(value, default=DEFAULT_COLOR):
    """ReportLab colour for a hex string, colour name, or RGB triple."""
    fallback = colors.toColor(default)
    if value is None or value == "":
        return fallback
    if isinstance(value, (list, tuple)):
        if len(value) != 3 or not all(isinstance(v, (int, float)) for v in value):
            return fallback
        if any(v > 1 for v in value):
            value = tuple(v / 255.0 for v in value)
        if not all(0 <= v <= 1 for v in value):
            return fallback
        return colors.Color(*value)
    if not isinstance(value, str):
        return fallback
    return colors.toColor(value, fallback)


# ── surface ────────────────────────────────────────────────────────────────────
class Surface:
    """Drawing primitives for one render session."""

    def __init__(self, size, default_font=DEFAULT_FONT, meta=None, invariant=False):
        self.width, self.height = size
        self._buf = io.BytesIO()
        self.cv = BufferedCanvas(self._buf, pagesize=size, invariant=1 if invariant else 0)
        self._fonts = {}
        self.default_font = DEFAULT_FONT
        self.default_font = self.font(default_font)
        self._images = {}
        self._sealed = False
        self._apply_meta(meta or {})

    def _apply_meta(self, meta):
        setters = {
            "title": self.cv.setTitle,
            "author": self.cv.setAuthor,
            "subject": self.cv.setSubject,
            "keywords": self.cv.setKeywords,
            "creator": self.cv.setCreator,
            "producer": self.cv.setProducer,
        }
        for key, value in meta.items():
            if key in setters:
                setters[key](value)

    # ── coordinates ───────────────────────────────────────────────────────────
    def rl_y_for(self, y, h=0.0):
        return self.height - y - h

    # ── fonts & metrics ───────────────────────────────────────────────────────
    def font(self, name):
        """Registered font name, falling back to the session default."""
        if not name:
            return self.default_font
        if name not in self._fonts:
            try:
                pdfmetrics.getFont(name)
                self._fonts[name] = name
            except (KeyError, ValueError, OSError):
                LOGGER.warning("Unknown font %r; using %s", name, self.default_font)
                self._fonts[name] = self.default_font
        return self._fonts[name]

    def text_width(self, text, font, size):
        return pdfmetrics.stringWidth(text, self.font(font), size)

    def wrap_lines(self, text, font, size, width):
        """Wrapped ``(line, paragraph_end)`` pairs; blank lines are kept."""
        if not text:
            return []
        font = self.font(font)
        pairs = []
        for para in str(text).replace('\r\n', '\n').replace('\r', '\n').split('\n'):
            lines = simpleSplit(para, font, size, max(width, 1.0)) or [""]
            pairs.extend((line, i == len(lines) - 1) for i, line in enumerate(lines))
        return pairs

    def wrap(self, text, font, size, width):
        """Split text into lines no wider than ``width``."""
        return [line for line, _ in self.wrap_lines(text, font, size, width)]

    def fit(self, text, font, size, max_w):
        """Trim text from the right until it fits ``max_w``."""
        s = str(text)
        font = self.font(font)
        while len(s) > 1 and pdfmetrics.stringWidth(s, font, size) > max_w:
            s = s[:-1]
        if s and pdfmetrics.stringWidth(s, font, size) > max_w:
            return ""
        return s

    # ── pages ─────────────────────────────────────────────────────────────────
    @property
    def page(self):
        return self.cv.current_page_index()

    def new_page(self):
        self.cv.showPage()
        LOGGER.debug("Started page %d", self.page + 1)
        return self.page

    def page_count(self):
        return self.cv.buffered_page_count()

    def switch_to_page(self, index):
        self.cv.switch_to_page(index)

    # ── text ──────────────────────────────────────────────────────────────────
    def place_line(self, line, x, y, width, style, align="left", last=True):
        """Draw one line inside the box starting at (x, y); returns (line_x, line_w)."""
        c = self.cv
        font = self.font(style.font)
        size = style.size
        lw = pdfmetrics.stringWidth(line, font, size)
        lx = x
        word_space = 0.0
        if align == "right":
            lx = x + width - lw
        elif align == "center":
            lx = x + (width - lw) / 2.0
        elif align == "justify" and not last:
            gaps = line.count(" ")
            if gaps and lw < width:
                word_space = (width - lw) / gaps
                lw = width

        baseline = self.rl_y_for(y + (style.line_height - style.line_gap - size) / 2.0 + size * 0.8)
        c.saveState()
        c.setFillColor(to_color(style.color))
        t = c.beginText(lx, baseline)
        t.setFont(font, size)
        if word_space:
            t.setWordSpace(word_space)
        t.textOut(line)
        c.drawText(t)
        if line and (style.underline or style.strike):
            c.setStrokeColor(to_color(style.color))
            c.setLineWidth(max(0.5, size / 20.0))
            if style.underline:
                c.line(lx, baseline - size * 0.12, lx + lw, baseline - size * 0.12)
            if style.strike:
                c.line(lx, baseline + size * 0.3, lx + lw, baseline + size * 0.3)
        c.restoreState()
        return lx, lw

    def place_text(self, text, x, y, width, style, align="left", link=None, indent=0.0):
        """Write a wrapped block at (x, y) without page checks; returns the consumed Box."""
        lines = self.wrap_lines(text, style.font, style.size, width - indent)
        lh = style.line_height
        cy = y
        for line, last in lines:
            lx, lw = self.place_line(line, x + indent, cy, width - indent, style, align, last=last)
            if link and lw > 0:
                self.add_link(lx, cy, lw, lh, link)
            cy += lh
        return Box(self.page, x, y, width, cy - y)

    # ── shapes ────────────────────────────────────────────────────────────────
    def fill_rect(self, x, y, w, h, color, opacity=None):
        c = self.cv
        c.saveState()
        c.setFillColor(to_color(color))
        if opacity is not None:
            c.setFillAlpha(opacity)
        c.rect(x, self.rl_y_for(y, h), w, h, fill=1, stroke=0)
        c.restoreState()

    def stroke_rect(self, x, y, w, h, color, line_width=1.0):
        c = self.cv
        c.saveState()
        c.setStrokeColor(to_color(color))
        c.setLineWidth(line_width)
        c.rect(x, self.rl_y_for(y, h), w, h, fill=0, stroke=1)
        c.restoreState()

    def stroke_line(self, x1, y1, x2, y2, color, line_width=1.0):
        c = self.cv
        c.saveState()
        c.setStrokeColor(to_color(color))
        c.setLineWidth(line_width)
        c.line(x1, self.rl_y_for(y1), x2, self.rl_y_for(y2))
        c.restoreState()

    # ── images ────────────────────────────────────────────────────────────────
    def load_image(self, src):
        """Decode an image source (path, bytes, or data: URI) once per session."""
        if not isinstance(src, (str, bytes, bytearray)):
            raise AssetError(src, "unsupported image source")
        key = bytes(src) if isinstance(src, bytearray) else src
        if key not in self._images:
            raw = _read_image_source(src)
            try:
                img = PILImage.open(io.BytesIO(raw))
                img.load()
            except (UnidentifiedImageError, OSError) as exc:
                raise AssetError(src, exc) from exc
            if img.mode not in ('RGB', 'RGBA', 'L'):
                img = img.convert('RGBA' if 'A' in img.getbands() else 'RGB')
            self._images[key] = img
        return self._images[key]

    def image_size(self, src):
        return self.load_image(src).size

    def place_image(self, src, x, y, width, height):
        img = self.load_image(src)
        self.cv.drawImage(ImageReader(img), x, self.rl_y_for(y, height), width=width, height=height,
                          mask='auto')
        return Box(self.page, x, y, width, height)

    # ── annotations ───────────────────────────────────────────────────────────
    def add_link(self, x, y, w, h, url):
        """Attach a URI link annotation over a top-down rectangle."""
        if not url or w <= 0 or h <= 0:
            return None
        bottom = self.rl_y_for(y, h)
        self.cv.linkURL(str(url), (x, bottom, x + w, bottom + h), relative=0, thickness=0)
        return Box(self.page, x, y, w, h)

    # ── output ────────────────────────────────────────────────────────────────
    def finalize(self, post=None):
        """Seal the document; ``post(surface, index, total)`` runs on every page first."""
        if self._sealed:
            raise RuntimeError("Surface already finalized")
        hook = None
        if post is not None:
            def hook(i, total):
                post(self, i, total)
        self.cv.flush_pages(hook)
        self.cv.save()
        self._sealed = True
        self._images.clear()
        return self._buf.getvalue()


def _read_image_source(src):
    if isinstance(src, (bytes, bytearray)):
        return bytes(src)
    if not isinstance(src, str) or not src:
        raise AssetError(src, "no image source given")
    if src.startswith("data:"):
        header, _, payload = src.partition(",")
        if ";base64" not in header:
            raise AssetError(src, "only base64 data URIs are supported")
        try:
            return base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise AssetError(src, exc) from exc
    try:
        return Path(src).read_bytes()
    except OSError as exc:
        raise AssetError(src, exc) from exc
