"""
Readback
--------
Inspect a rendered PDF with pikepdf: link annotations, the text shown by each
page's content stream, and the info dictionary. Used by the CLI and tests.
"""
import io
from collections import namedtuple

import pikepdf

LinkAnnotation = namedtuple("LinkAnnotation", "page rect uri")

_TEXT_OPS = {"Tj", "TJ", "'", '"'}


def _open(data):
    if isinstance(data, pikepdf.Pdf):
        return data
    return pikepdf.open(io.BytesIO(bytes(data)))


def _deref(obj, pdf):
    """Resolve an indirect object to its value."""
    try:
        if obj.is_indirect:
            return pdf.get_object(obj.objgen)
    except (AttributeError, ValueError):
        pass
    return obj


def _string(obj):
    if isinstance(obj, pikepdf.String):
        return bytes(obj).decode("latin-1")
    return str(obj)


def page_count(data):
    with _open(data) as pdf:
        return len(pdf.pages)


def link_annotations(data):
    """Every /Link annotation with a /URI action, in page order."""
    out = []
    with _open(data) as pdf:
        for index, page in enumerate(pdf.pages):
            annots = page.obj.get("/Annots")
            if annots is None:
                continue
            for annot in _deref(annots, pdf):
                annot = _deref(annot, pdf)
                if annot.get("/Subtype") != pikepdf.Name.Link:
                    continue
                action = annot.get("/A")
                if action is None:
                    continue
                action = _deref(action, pdf)
                if action.get("/S") != pikepdf.Name.URI:
                    continue
                rect = tuple(float(v) for v in annot.get("/Rect", []))
                out.append(LinkAnnotation(index, rect, _string(action.get("/URI"))))
    return out


def page_texts(data):
    """Text operands of each page's content stream, one string per page.

    Only text-showing operators are read; annotations are not part of it.
    """
    texts = []
    with _open(data) as pdf:
        for page in pdf.pages:
            parts = []
            for instruction in pikepdf.parse_content_stream(page.obj):
                if str(instruction.operator) not in _TEXT_OPS:
                    continue
                for operand in instruction.operands:
                    if isinstance(operand, pikepdf.Array):
                        parts.extend(_string(o) for o in operand if isinstance(o, pikepdf.String))
                    elif isinstance(operand, pikepdf.String):
                        parts.append(_string(operand))
                parts.append("\n")
            texts.append("".join(parts))
    return texts


def document_info(data):
    """The /Info dictionary as plain strings, keys without the leading slash."""
    with _open(data) as pdf:
        return {str(k).lstrip("/"): _string(v) for k, v in pdf.docinfo.items()}
