import logging
import sys
from io import BytesIO
from pathlib import Path
from typing import Optional

import structlog
from mcp.server.fastmcp import FastMCP

from sortlines.batch import ASK_IF_SELECTED_TEXT_COMPONENT_THRESHOLD, sort_selection
from sortlines.diff import preview_node
from sortlines.selection import selected_text_nodes
from sortlines.surfaces import PresetSurface
from sortlines.utils.docx import DocxHost

# --- LOGGING CONFIGURATION ---
# MCP communicates over stdio: all logs go to stderr.
logging.basicConfig(stream=sys.stderr, level=logging.INFO, force=True)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

mcp = FastMCP("Sortlines Service")


def _read_file_bytes(path: str) -> BytesIO:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(p, "rb") as f:
        return BytesIO(f.read())


def _save_stream(stream: BytesIO, path: str):
    with open(path, "wb") as f:
        f.write(stream.getvalue())


@mcp.tool()
async def sort_docx_lines(
    docx_path: str,
    output_path: Optional[str] = None,
    confirmed: bool = False,
    strict_fonts: bool = False,
) -> str:
    """
    Sorts the lines (soft line breaks) of every plain paragraph in a DOCX file
    alphabetically, keeping each character's formatting.

    Args:
        docx_path: Absolute path to the DOCX file.
        output_path: Optional. Defaults to '<name>_sorted.docx' next to the input
                     (overwritten in place if the input already ends in _sorted).
        confirmed: Must be True when the document has
                   several text components; otherwise nothing is changed.
        strict_fonts: If True, fail when a run uses a font missing from the font table.
    """
    try:
        stream = _read_file_bytes(docx_path)
        host = DocxHost(stream, ui=PresetSurface(confirmed), strict_fonts=strict_fonts)
        result = await sort_selection(host)

        if result.cancelled:
            return (
                f"Found {result.selected} text components (threshold {ASK_IF_SELECTED_TEXT_COMPONENT_THRESHOLD}). "
                "Nothing changed. Call again with confirmed=True to sort them."
            )

        if not output_path:
            p = Path(docx_path)
            if p.stem.endswith("_sorted"):
                output_path = str(p)
            else:
                output_path = str(p.parent / f"{p.stem}_sorted{p.suffix}")

        _save_stream(host.save_to_stream(), output_path)
        messages = " ".join(host.notifications)
        return f"{messages} Saved to: {output_path}".strip()

    except Exception as e:
        return f"Error sorting lines: {str(e)}"


@mcp.tool()
def preview_sorted_lines(docx_path: str) -> str:
    """
    Shows, without modifying the file, how each paragraph's lines would be
    reordered. Removed lines are prefixed '- ', added lines '+ '.

    Args:
        docx_path: Absolute path to the DOCX file.
    """
    try:
        host = DocxHost(_read_file_bytes(docx_path))
        output = []
        for i, node in enumerate(selected_text_nodes(host.selection)):
            lines = preview_node(node)
            if lines:
                output.append(f"@@ Text {i} @@")
                output.extend(lines)
                output.append("")

        if not output:
            return "All text components are already sorted."
        return "\n".join(output)

    except Exception as e:
        return f"Error previewing sort: {str(e)}"


def main():
    mcp.run()


if __name__ == "__main__":
    main()
