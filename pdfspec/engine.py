"""
Render session
--------------
``PdfEngine.render(spec)`` walks the element sequence once, strictly in
order, then seals the buffered pages (stamping page numbers first when the
specification asks for them) and returns the PDF bytes.
"""
import random
from pathlib import Path

from pdfspec.errors import OutputError
from pdfspec.layout import Cursor
from pdfspec.log import get_logger
from pdfspec.renderers import ElementRenderer
from pdfspec.spec import DEFAULT_FONT, DEFAULT_FONT_SIZE, DEFAULT_SIZE, DocumentSpec, Margins
from pdfspec.surface import Surface, TextStyle

LOGGER = get_logger(__name__)


class PageNumberStamp:
    """Post-processing hook that writes "Page i of n" into the bottom margin."""

    def __init__(self, numbering, margins, font):
        self.numbering = numbering
        self.margins = margins
        self.style = TextStyle(numbering.font or font, numbering.font_size, numbering.color)
        self.stamped = []

    def __call__(self, surface, index, total):
        label = self.numbering.label(index, total)
        left = self.margins.left
        width = surface.width - self.margins.left - self.margins.right
        y = surface.height - self.margins.bottom + self.numbering.offset
        surface.place_text(label, left, y, width, self.style, align=self.numbering.align)
        self.stamped.append(label)


class PdfEngine:
    """Builds PDFs from plain document specifications.

    ``rng`` may be a ``random.Random`` (used as-is) or an int seed (a fresh
    generator per render, so repeated renders match). With ``invariant`` set,
    identical input gives byte-identical output.
    """

    def __init__(self, default_font=DEFAULT_FONT, default_font_size=DEFAULT_FONT_SIZE,
                 margins=None, size=DEFAULT_SIZE, rng=None, invariant=False):
        self.default_font = default_font
        self.default_font_size = default_font_size
        self.margins = margins if isinstance(margins, Margins) else Margins.parse(margins)
        self.size = size
        self.rng = rng
        self.invariant = invariant

    def _rng(self):
        if self.rng is None:
            return random.Random()
        if isinstance(self.rng, int):
            return random.Random(self.rng)
        return self.rng

    def parse(self, spec):
        if isinstance(spec, DocumentSpec):
            return spec
        return DocumentSpec.from_dict(spec, size=self.size, margins=self.margins)

    def render(self, spec):
        """Render a specification and return the sealed PDF bytes."""
        doc = self.parse(spec)
        surface = Surface(doc.size, self.default_font, doc.meta, invariant=self.invariant)
        ctx = Cursor.for_page(surface, doc.margins)
        renderer = ElementRenderer(surface.font(self.default_font), self.default_font_size, self._rng())

        for el in doc.elements:
            renderer.dispatch(ctx, el)

        stamp = None
        if doc.page_numbers is not None:
            stamp = PageNumberStamp(doc.page_numbers, doc.margins, renderer.font)
        pages = surface.page_count()
        data = surface.finalize(stamp)
        LOGGER.info("Rendered %d element(s) onto %d page(s), %d bytes", len(doc.elements), pages, len(data))
        return data

    def generate_to_buffer(self, spec):
        return self.render(spec)

    def generate_to_file(self, spec, file_path):
        """Render and write to ``file_path``; returns the absolute path."""
        data = self.render(spec)
        path = Path(file_path).resolve()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise OutputError(f"Cannot write {path}: {exc}") from exc
        return path

    def generate_to_stream(self, spec, stream):
        """Render and write into any binary file-like object."""
        data = self.render(spec)
        try:
            stream.write(data)
            if hasattr(stream, "flush"):
                stream.flush()
        except OSError as exc:
            raise OutputError(f"Cannot write to stream: {exc}") from exc
        return len(data)


def render(spec, **options):
    """Module-level shortcut for ``PdfEngine(**options).render(spec)``."""
    return PdfEngine(**options).render(spec)
