from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from sortlines.batch import sort_selection
from sortlines.models import MIXED, Character
from sortlines.sorter.engine import plan_sort, sort_lines
from sortlines.utils.docx import DocxHost

try:
    __version__ = version("sortlines")
except PackageNotFoundError:
    # Running from a source checkout without installation.
    _version_file = Path(__file__).parent / "VERSION"
    if _version_file.is_file():
        __version__ = _version_file.read_text().strip()
    else:
        __version__ = "0.0.0-dev"

__all__ = [
    "sort_lines",
    "sort_selection",
    "plan_sort",
    "DocxHost",
    "Character",
    "MIXED",
    "__version__",
]
