"""
Spec PDF Renderer
-----------------
Usage:  pdfspec <spec.json> [output.pdf] [--links] [--invariant]
"""
import argparse
import json
import os
import sys

from pdfspec.engine import PdfEngine
from pdfspec.errors import PdfSpecError
from pdfspec.readback import link_annotations


def render(inp, out, links=False, invariant=False):
    print(f"\n{'='*60}\n  Spec PDF Renderer\n  In : {inp}\n  Out: {out}\n{'='*60}\n")

    print("[1/3] Loading specification...")
    with open(inp, encoding="utf-8") as fh:
        spec = json.load(fh)
    elements = spec.get("elements") or spec.get("content") if isinstance(spec, dict) else None
    print(f"      {len(elements) if isinstance(elements, list) else 0} top-level element(s)")

    print("[2/3] Rendering...")
    engine = PdfEngine(invariant=invariant)
    path = engine.generate_to_file(spec, out)

    print("[3/3] Reading back...")
    data = path.read_bytes()
    annots = link_annotations(data)
    print(f"      {len(data)} bytes, {len(annots)} link annotation(s)")
    if links:
        for a in annots:
            x1, y1, x2, y2 = a.rect
            print(f"      page {a.page + 1}  [{x1:.1f} {y1:.1f} {x2:.1f} {y2:.1f}]  {a.uri}")

    print(f"\n  Done -> {path}\n")
    return path


def main(argv=None):
    parser = argparse.ArgumentParser(description="Render a JSON document specification into a PDF")
    parser.add_argument("spec", help="Path to the JSON specification")
    parser.add_argument("output", nargs="?", help="Output PDF path (default: next to the spec)")
    parser.add_argument("--links", action="store_true", help="List the link annotations of the result")
    parser.add_argument("--invariant", action="store_true", help="Reproducible output (fixed dates and ids)")
    args = parser.parse_args(argv)

    if not os.path.exists(args.spec):
        sys.exit(f"Not found: {args.spec}")
    out = args.output or os.path.splitext(args.spec)[0] + ".pdf"
    try:
        render(args.spec, out, links=args.links, invariant=args.invariant)
    except json.JSONDecodeError as exc:
        sys.exit(f"Invalid JSON in {args.spec}: {exc}")
    except (UnicodeDecodeError, OSError) as exc:
        sys.exit(f"Cannot read {args.spec}: {exc}")
    except PdfSpecError as exc:
        sys.exit(f"Render failed: {exc}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
