"""End-to-end tests: specification in, PDF bytes out, read back with pikepdf."""
import io
import itertools

import pikepdf
import pytest

import pdfspec
from pdfspec.engine import PageNumberStamp, PdfEngine
from pdfspec.errors import AssetError, OutputError, SpecError
from pdfspec.readback import document_info, link_annotations, page_count, page_texts
from pdfspec.spec import Margins, PageNumbers
from pdfspec.surface import Surface

from conftest import A4

SAMPLES = [
    {"type": "heading", "value": "Quarterly report", "level": 2},
    {"type": "text", "value": "Body text " * 30, "align": "justify"},
    {"type": "link", "value": "Home", "url": "https://home.example"},
    {"type": "stealthLink", "value": "terms", "url": "https://terms.example"},
    {"type": "list", "ordered": True, "items": ["one", "two"]},
    {"type": "table", "headers": ["A", "B"], "rows": [["1", "2"], ["3", "4"]]},
    {"type": "divider"},
    {"type": "spacer", "lines": 2},
    {"type": "rect", "x": 10, "y": 10, "width": 40, "height": 40, "fill": "#eeeeee"},
    {"type": "columns", "columns": [{"elements": [{"type": "text", "value": "L"}]},
                                    {"elements": [{"type": "text", "value": "R"}]}]},
    {"type": "overlay", "height": 120, "url": "https://unlock.example"},
    {"type": "pageBreak"},
]


def _doc(*elements, **root):
    root["elements"] = list(elements)
    return root


class TestRender:
    @pytest.mark.parametrize("pair", list(itertools.combinations(range(len(SAMPLES)), 2)))
    def test_any_combination_yields_a_pdf(self, engine, pair):
        data = engine.render(_doc(*(SAMPLES[i] for i in pair)))
        assert data.startswith(b"%PDF-")
        assert page_count(data) >= 1

    def test_every_kind_together(self, engine):
        data = engine.render(_doc(*SAMPLES))
        assert page_count(data) == 2
        uris = [a.uri for a in link_annotations(data)]
        assert {"https://home.example", "https://terms.example", "https://unlock.example"} <= set(uris)

    def test_empty_document(self, engine):
        data = engine.render({"elements": []})
        assert data.startswith(b"%PDF-")
        assert page_count(data) == 1
        assert link_annotations(data) == []

    def test_unknown_kinds_are_skipped(self, engine):
        plain = engine.render(_doc({"type": "text", "value": "a"}, {"type": "text", "value": "b"}))
        noisy = engine.render(_doc({"type": "text", "value": "a"}, {"type": "hologram", "value": "?"},
                                   "stray", {"type": "text", "value": "b"}))
        assert noisy == plain

    def test_identical_input_identical_bytes(self, engine):
        doc = _doc(*SAMPLES)
        assert engine.render(doc) == engine.render(doc)

    def test_module_shortcut(self):
        data = pdfspec.render(_doc({"type": "text", "value": "hi"}), invariant=True)
        assert page_texts(data)[0].strip() == "hi"

    def test_landscape(self, engine):
        data = engine.render({"size": "A4", "layout": "landscape", "elements": []})
        with pikepdf.open(io.BytesIO(data)) as pdf:
            box = [float(v) for v in pdf.pages[0].mediabox]
        assert box[2] > box[3]

    def test_custom_margins(self, engine):
        data = engine.render({"margins": 100, "elements": [{"type": "link", "value": "x", "url": "https://m.example"}]})
        (annot,) = link_annotations(data)
        assert annot.rect[0] == pytest.approx(100, abs=0.05)
        assert annot.rect[3] == pytest.approx(A4[1] - 100, abs=0.05)

    def test_engine_defaults(self):
        engine = PdfEngine(default_font="Times-Roman", default_font_size=9, margins={"left": 80},
                           invariant=True)
        assert engine.margins == Margins(50, 50, 80, 50)
        data = engine.render(_doc({"type": "link", "value": "x", "url": "https://d.example"}))
        (annot,) = link_annotations(data)
        assert annot.rect[0] == pytest.approx(80, abs=0.05)
        assert annot.rect[3] - annot.rect[1] == pytest.approx(9 * 1.2, abs=0.05)

    def test_unknown_default_font_falls_back(self):
        data = PdfEngine(default_font="NotAFont", invariant=True).render(_doc({"type": "text", "value": "ok"}))
        assert "ok" in page_texts(data)[0]


class TestStealth:
    def test_url_never_in_text_content(self, engine):
        url = "https://secret.example/landing?id=7"
        data = engine.render(_doc({"type": "stealthLink", "value": "Terms apply", "url": url}))
        texts = page_texts(data)
        assert "Terms apply" in texts[0]
        assert all(url not in t for t in texts)
        assert [a.uri for a in link_annotations(data)] == [url]


class TestPageNumbers:
    def test_every_page_stamped(self, engine):
        data = engine.render(_doc({"type": "text", "value": "start"},
                                  {"type": "pageBreak"}, {"type": "pageBreak"}, {"type": "pageBreak"},
                                  pageNumbers=True))
        texts = page_texts(data)
        assert len(texts) == 4
        for i, text in enumerate(texts, start=1):
            assert f"Page {i} of 4" in text

    def test_custom_prefix(self, engine):
        data = engine.render(_doc({"type": "pageBreak"}, pageNumbers={"prefix": "p. "}))
        assert [("p. 1 of 2" in t, "p. 2 of 2" in t) for t in page_texts(data)] == [(True, False), (False, True)]

    def test_not_requested(self, engine):
        data = engine.render(_doc({"type": "pageBreak"}))
        assert all(" of " not in t for t in page_texts(data))

    def test_stamp_position(self):
        stamp = PageNumberStamp(PageNumbers(), Margins(), "Helvetica")
        surface = Surface(A4, invariant=True)
        surface.new_page()
        data = surface.finalize(stamp)
        assert stamp.stamped == ["Page 1 of 2", "Page 2 of 2"]
        assert page_count(data) == 2


class TestInvoice:
    SPEC = {
        "size": "A4",
        "meta": {"title": "Invoice INV-0042", "author": "Billing"},
        "elements": [
            {"type": "heading", "value": "Invoice INV-0042"},
            {"type": "text", "value": "Billed to: Example Ltd.\nDue: 30 days"},
            {"type": "divider"},
            {"type": "table", "headers": ["Description", "Amount"], "rows": [
                ["Consulting", "1,200.00"],
                ["Hosting", "300.00"],
                [{"text": "Total"}, {"text": "Pay 1,500.00", "link": "https://pay.example/inv-0042"}],
            ]},
            {"type": "spacer"},
            {"type": "text", "value": "Thank you for your business."},
        ],
    }

    def test_single_page_with_one_payment_link(self, engine):
        data = engine.render(self.SPEC)
        assert page_count(data) == 1
        (annot,) = link_annotations(data)
        assert annot.uri == "https://pay.example/inv-0042"
        text = page_texts(data)[0]
        assert "Consulting" in text and "Thank you for your business." in text

    def test_metadata(self, engine):
        info = document_info(engine.render(self.SPEC))
        assert info["Title"] == "Invoice INV-0042"
        assert info["Author"] == "Billing"


class TestOutput:
    def test_generate_to_file(self, engine, tmp_path):
        target = tmp_path / "nested" / "dir" / "out.pdf"
        path = engine.generate_to_file(_doc({"type": "text", "value": "saved"}), target)
        assert path == target.resolve()
        assert path.read_bytes().startswith(b"%PDF-")

    def test_generate_to_buffer(self, engine):
        doc = _doc({"type": "text", "value": "buffered"})
        assert engine.generate_to_buffer(doc) == engine.render(doc)

    def test_generate_to_stream(self, engine):
        stream = io.BytesIO()
        n = engine.generate_to_stream(_doc({"type": "text", "value": "streamed"}), stream)
        assert n == len(stream.getvalue())
        assert stream.getvalue().startswith(b"%PDF-")

    def test_unwritable_target(self, engine, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(OutputError):
            engine.generate_to_file(_doc(), blocker / "out.pdf")


class TestErrors:
    def test_missing_image_propagates(self, engine, tmp_path):
        with pytest.raises(AssetError) as exc_info:
            engine.render(_doc({"type": "text", "value": "before"},
                               {"type": "image", "src": str(tmp_path / "absent.png")}))
        assert exc_info.value.src == str(tmp_path / "absent.png")

    @pytest.mark.parametrize("spec", [{"elements": "text"}, {"size": "B99"}, [1, 2]])
    def test_malformed_root(self, engine, spec):
        with pytest.raises(SpecError):
            engine.render(spec)

    def test_errors_share_a_base(self):
        assert issubclass(AssetError, pdfspec.PdfSpecError)
        assert issubclass(OutputError, pdfspec.PdfSpecError)
        assert issubclass(SpecError, pdfspec.PdfSpecError)


class TestRandomness:
    def test_seeded_engine_is_repeatable(self):
        doc = _doc({"type": "overlay", "url": "https://o.example"})
        assert PdfEngine(rng=5, invariant=True).render(doc) == PdfEngine(rng=5, invariant=True).render(doc)

    def test_different_seeds_differ(self):
        doc = _doc({"type": "overlay", "url": "https://o.example"})
        assert PdfEngine(rng=5, invariant=True).render(doc) != PdfEngine(rng=6, invariant=True).render(doc)
