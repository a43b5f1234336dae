"""Shared fixtures for the pdfspec test suite."""
import random

import pytest
from PIL import Image

from pdfspec.engine import PdfEngine
from pdfspec.layout import Cursor
from pdfspec.renderers import ElementRenderer
from pdfspec.spec import Margins, page_size
from pdfspec.surface import Surface

A4 = page_size("A4")
LEFT = TOP = 50.0
RIGHT = A4[0] - 50.0
BOTTOM = A4[1] - 50.0


class RecordingSurface(Surface):
    """Surface that remembers what was drawn, and on which page."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lines = []
        self.fills = []
        self.links = []

    def place_line(self, line, x, y, width, style, align="left", last=True):
        self.lines.append((self.page, line, x, y, style))
        return super().place_line(line, x, y, width, style, align, last)

    def fill_rect(self, x, y, w, h, color, opacity=None):
        self.fills.append((self.page, x, y, w, h, color, opacity))
        return super().fill_rect(x, y, w, h, color, opacity)

    def add_link(self, x, y, w, h, url):
        self.links.append((self.page, x, y, w, h, url))
        return super().add_link(x, y, w, h, url)

    def texts(self):
        return [entry[1] for entry in self.lines]


@pytest.fixture
def surface():
    return RecordingSurface(A4, invariant=True)


@pytest.fixture
def ctx(surface):
    return Cursor.for_page(surface, Margins())


@pytest.fixture
def renderer():
    return ElementRenderer(rng=random.Random(1234))


@pytest.fixture
def engine():
    """Engine with a seeded overlay generator and reproducible output."""
    return PdfEngine(rng=1234, invariant=True)


@pytest.fixture
def png_path(tmp_path):
    path = tmp_path / "logo.png"
    Image.new("RGB", (40, 20), (200, 30, 30)).save(path)
    return path


def rl_rect(x, y, w, h, page_height=A4[1]):
    """Top-down box to the (x1, y1, x2, y2) rectangle stored in the PDF."""
    return (x, page_height - y - h, x + w, page_height - y)


def assert_rect(actual, expected, tol=0.05):
    assert len(actual) == 4
    for a, e in zip(actual, expected):
        assert a == pytest.approx(e, abs=tol), (actual, expected)
