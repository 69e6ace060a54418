import argparse
import asyncio
import sys
from io import BytesIO
from pathlib import Path

from sortlines import __version__
from sortlines.batch import ASK_IF_SELECTED_TEXT_COMPONENT_THRESHOLD, sort_selection
from sortlines.diff import preview_node
from sortlines.selection import selected_text_nodes
from sortlines.surfaces import PresetSurface, TerminalSurface
from sortlines.utils.docx import DocxHost


def _read_docx_stream(path: Path) -> BytesIO:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    with open(path, "rb") as f:
        return BytesIO(f.read())


def default_output_path(input_path: Path) -> Path:
    if input_path.stem.endswith("_sorted"):
        return input_path
    return input_path.with_name(f"{input_path.stem}_sorted{input_path.suffix}")


def handle_sort(args):
    stream = _read_docx_stream(args.input)
    ui = PresetSurface(True) if args.yes else TerminalSurface()
    host = DocxHost(
        stream,
        ui=ui,
        notify=lambda message: print(message, file=sys.stderr),
        strict_fonts=args.strict_fonts,
    )

    try:
        result = asyncio.run(sort_selection(host, threshold=args.threshold))
    except Exception as e:
        print(f"Error: Sorting failed: {e}", file=sys.stderr)
        sys.exit(1)

    if result.cancelled:
        print("Cancelled. No changes written.", file=sys.stderr)
        return

    output_path = args.output or default_output_path(args.input)
    with open(output_path, "wb") as f:
        f.write(host.save_to_stream().getvalue())

    print(f"✅ Saved to {output_path}", file=sys.stderr)


def handle_preview(args):
    stream = _read_docx_stream(args.input)
    host = DocxHost(stream)

    changed = 0
    for i, node in enumerate(selected_text_nodes(host.selection)):
        lines = preview_node(node)
        if not lines:
            continue
        changed += 1
        print(f"@@ Text {i} @@")
        for line in lines:
            print(line)
        print()

    print(f"{changed} text component(s) would change.", file=sys.stderr)


def main():
    parser = argparse.ArgumentParser(
        prog="sortlines", description="Sort the lines of DOCX paragraphs while keeping their formatting"
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    p_sort = subparsers.add_parser("sort", help="Sort the lines of every plain paragraph in a DOCX")
    p_sort.add_argument("input", type=Path, help="Input DOCX file")
    p_sort.add_argument("-o", "--output", type=Path, help="Output DOCX path (default: <input>_sorted.docx)")
    p_sort.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    p_sort.add_argument(
        "--threshold",
        type=int,
        default=ASK_IF_SELECTED_TEXT_COMPONENT_THRESHOLD,
        help=(
            "Ask for confirmation when at least this many text components are found "
            f"(default: {ASK_IF_SELECTED_TEXT_COMPONENT_THRESHOLD})"
        ),
    )
    p_sort.add_argument(
        "--strict-fonts",
        action="store_true",
        help="Fail when a run uses a font missing from the document's font table",
    )
    p_sort.set_defaults(func=handle_sort)

    p_preview = subparsers.add_parser("preview", help="Show how each paragraph would be reordered")
    p_preview.add_argument("input", type=Path, help="Input DOCX file")
    p_preview.set_defaults(func=handle_preview)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
