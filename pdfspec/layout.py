"""Cursor / layout context threaded through every element renderer."""
from pdfspec.log import get_logger

LOGGER = get_logger(__name__)


class Cursor:
    """Write position within a content area of the shared surface.

    ``left``/``right`` bound the horizontal content area of this context (the
    page margins at top level, one column inside ``columns``); ``top`` and
    ``bottom`` are the page's vertical margins. ``y`` stays inside
    ``[top, bottom]`` between renderer calls.
    """

    def __init__(self, surface, left, top, right, bottom):
        self.surface = surface
        self.left = left
        self.top = top
        self.right = right
        self.bottom = bottom
        self.x = left
        self.y = top

    @classmethod
    def for_page(cls, surface, margins):
        return cls(surface, margins.left, margins.top,
                   surface.width - margins.right, surface.height - margins.bottom)

    @property
    def page(self):
        return self.surface.page

    @property
    def width(self):
        return self.right - self.left

    def remaining(self):
        return self.bottom - self.y

    def fits(self, height):
        return self.y + height <= self.bottom

    def new_page(self):
        self.surface.new_page()
        self.x = self.left
        self.y = self.top

    def ensure_space(self, needed):
        """Start a new page when ``needed`` does not fit; a fresh page is never skipped."""
        if not self.fits(needed) and self.y > self.top:
            LOGGER.debug("%.1fpt needed, %.1fpt left on page %d; breaking",
                         needed, self.remaining(), self.page + 1)
            self.new_page()
            return True
        return False

    def advance(self, dy):
        """Move down by ``dy``, staying between the top and bottom margins."""
        self.y = max(self.top, min(self.y + dy, self.bottom))

    def column(self, left, width):
        """Child context for one column, starting at this context's current y."""
        child = Cursor(self.surface, left, self.top, left + width, self.bottom)
        child.y = self.y
        return child

    def __repr__(self):
        return "Cursor(page=%d, x=%.1f, y=%.1f, left=%.1f, right=%.1f)" % (
            self.page, self.x, self.y, self.left, self.right)
