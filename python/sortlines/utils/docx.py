"""
DOCX host: exposes a Word document as a scene of styled text nodes.

Each plain paragraph becomes a TEXT node whose soft line breaks (w:br) are
the line separators. Paragraphs carrying anything richer than plain runs
(fields, comments, tracked changes, hyperlinks, drawings, page breaks) are
exposed as opaque nodes and never rewritten. So are paragraphs whose runs
differ in run properties the style attributes cannot tell apart.
"""

from copy import deepcopy
from functools import cached_property
from io import BytesIO
from itertools import groupby
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

import structlog
from docx import Document
from docx.document import Document as DocumentObject
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Length, Pt, RGBColor
from docx.table import Table, _Cell
from docx.text.paragraph import Paragraph
from docx.text.run import Run
from lxml import etree

from sortlines.fonts import FontUnavailableError
from sortlines.models import (
    STYLE_ATTRIBUTES,
    RGB,
    FontName,
    LetterSpacing,
    LineHeight,
    SolidPaint,
    TextCase,
    TextDecoration,
)
from sortlines.scene import TextNode

logger = structlog.get_logger(__name__)

# Successor tags in the CT_RPr sequence, used to keep rPr children in schema order
SPACING_SUCCESSORS = (
    "w:w", "w:kern", "w:position", "w:sz", "w:szCs", "w:highlight", "w:u", "w:effect",
    "w:bdr", "w:shd", "w:fitText", "w:vertAlign", "w:rtl", "w:cs", "w:em", "w:lang",
    "w:eastAsianLayout", "w:specVanish", "w:oMath",
)
HIGHLIGHT_SUCCESSORS = SPACING_SUCCESSORS[SPACING_SUCCESSORS.index("w:highlight") + 1 :]

SAFE_PARAGRAPH_TAGS = {qn("w:pPr"), qn("w:r"), qn("w:proofErr")}
SAFE_RUN_TAGS = {qn("w:rPr"), qn("w:t"), qn("w:tab"), qn("w:br"), qn("w:cr")}


# --- Reading ---
def is_plain_paragraph(paragraph: Paragraph) -> bool:
    """
    True when the paragraph holds only plain runs, so that rewriting its
    runs cannot destroy anything but run formatting.
    """
    for child in paragraph._p:
        if child.tag not in SAFE_PARAGRAPH_TAGS:
            return False
        if child.tag != qn("w:r"):
            continue
        for sub in child:
            if sub.tag not in SAFE_RUN_TAGS:
                return False
            # Page and column breaks are layout, not line breaks
            if sub.tag == qn("w:br") and sub.get(qn("w:type")) not in (None, "textWrapping"):
                return False
    return True


def _inherited_font_value(run: Run, paragraph: Paragraph, name: str) -> Any:
    """
    Value a font property takes when the run itself does not set it: the
    run's character style chain first, then the paragraph style chain.
    """
    for style in (run.style, paragraph.style):
        while style is not None:
            value = getattr(style.font, name)
            if value is not None:
                return value
            style = style.base_style
    return None


def _effective_font_value(run: Run, paragraph: Paragraph, name: str) -> Any:
    value = getattr(run.font, name)
    if value is None:
        return _inherited_font_value(run, paragraph, name)
    return value


def _set_toggle(run: Run, paragraph: Paragraph, name: str, wanted: bool):
    # Explicit off is written only where the styles would turn the property on
    if bool(_inherited_font_value(run, paragraph, name)) != wanted:
        setattr(run.font, name, wanted)


def _font_style(bold: Optional[bool], italic: Optional[bool]) -> str:
    if bold and italic:
        return "Bold Italic"
    if bold:
        return "Bold"
    if italic:
        return "Italic"
    return "Regular"


def _get_rpr_val(run: Run, tag: str) -> Optional[str]:
    rPr = run._r.rPr
    if rPr is None:
        return None
    el = rPr.find(qn(tag))
    if el is None:
        return None
    return el.get(qn("w:val"))


def read_line_height(paragraph: Paragraph) -> LineHeight:
    spacing = paragraph.paragraph_format.line_spacing
    if spacing is None:
        return LineHeight(unit="AUTO")
    if isinstance(spacing, Length):
        return LineHeight(unit="POINTS", value=spacing.pt)
    return LineHeight(unit="PERCENT", value=round(spacing * 100, 4))


def read_run_style(run: Run, paragraph: Paragraph) -> Dict[str, Any]:
    """
    Maps a run onto the nine style attributes. Bold, italic, caps,
    underline and strike are effective values, so a run that switches off
    what its style switches on reads differently from one that inherits.
    Size, family and colour are direct formatting; None means inherited.
    """
    font = run.font

    def effective(name):
        return _effective_font_value(run, paragraph, name)

    if effective("all_caps"):
        text_case = TextCase.UPPER
    elif effective("small_caps"):
        text_case = TextCase.SMALL_CAPS
    else:
        text_case = TextCase.ORIGINAL

    if effective("underline") not in (None, False):
        decoration = TextDecoration.UNDERLINE
    elif effective("strike"):
        decoration = TextDecoration.STRIKETHROUGH
    else:
        decoration = TextDecoration.NONE

    spacing_twips = _get_rpr_val(run, "w:spacing")
    rgb = font.color.rgb

    return {
        "font_size": font.size.pt if font.size is not None else None,
        "font_name": FontName(family=font.name, style=_font_style(effective("bold"), effective("italic"))),
        "text_case": text_case,
        "text_decoration": decoration,
        "letter_spacing": LetterSpacing(value=int(spacing_twips) / 20 if spacing_twips else 0.0, unit="POINTS"),
        "line_height": read_line_height(paragraph),
        "fills": (SolidPaint(color=RGB.from_hex(str(rgb))),) if rgb is not None else (),
        "text_style_id": run._r.style or "",
        "fill_style_id": _get_rpr_val(run, "w:highlight") or "",
    }


# --- Writing ---
def _set_rpr_val(run: Run, tag: str, value: str, successors: Tuple[str, ...]):
    rPr = run._r.get_or_add_rPr()
    existing = rPr.find(qn(tag))
    if existing is not None:
        rPr.remove(existing)
    el = OxmlElement(tag)
    el.set(qn("w:val"), value)
    rPr.insert_element_before(el, *successors)


def write_run_style(run: Run, style: Dict[str, Any], paragraph: Paragraph):
    """
    Writes attributes as direct formatting onto a run of paragraph.
    Inherited sizes, families and colours write nothing; toggles are
    written only where they differ from what the styles provide.
    """
    font = run.font

    # Character style first: toggles are compared against it
    if style["text_style_id"]:
        run._r.style = style["text_style_id"]

    if style["font_size"] is not None:
        font.size = Pt(style["font_size"])

    font_name: FontName = style["font_name"]
    if font_name.family:
        font.name = font_name.family
    _set_toggle(run, paragraph, "bold", "Bold" in font_name.style)
    _set_toggle(run, paragraph, "italic", "Italic" in font_name.style)

    _set_toggle(run, paragraph, "all_caps", style["text_case"] == TextCase.UPPER)
    _set_toggle(
        run, paragraph, "small_caps", style["text_case"] in (TextCase.SMALL_CAPS, TextCase.SMALL_CAPS_FORCED)
    )

    _set_toggle(run, paragraph, "underline", style["text_decoration"] == TextDecoration.UNDERLINE)
    _set_toggle(run, paragraph, "strike", style["text_decoration"] == TextDecoration.STRIKETHROUGH)

    spacing: LetterSpacing = style["letter_spacing"]
    if spacing.value and spacing.unit != "PERCENT":
        _set_rpr_val(run, "w:spacing", str(round(spacing.value * 20)), SPACING_SUCCESSORS)

    if style["fills"]:
        font.color.rgb = RGBColor.from_string(style["fills"][0].color.to_hex())

    if style["fill_style_id"]:
        _set_rpr_val(run, "w:highlight", style["fill_style_id"], HIGHLIGHT_SUCCESSORS)


def write_line_height(paragraph: Paragraph, line_height: LineHeight):
    if read_line_height(paragraph) == line_height:
        return
    if line_height.unit == "AUTO" or line_height.value is None:
        paragraph.paragraph_format.line_spacing = None
    elif line_height.unit == "PERCENT":
        paragraph.paragraph_format.line_spacing = line_height.value / 100
    else:
        paragraph.paragraph_format.line_spacing = Pt(line_height.value)


def style_key(style: Dict[str, Any]) -> Tuple[Any, ...]:
    return tuple(style[name] for name in STYLE_ATTRIBUTES)


def _canonical_rpr(run: Run) -> bytes:
    rPr = run._r.rPr
    if rPr is None or len(rPr) == 0:
        return b""
    return etree.tostring(rPr, method="c14n")


def read_run_formats(paragraph: Paragraph) -> Optional[List[Tuple[Run, Dict[str, Any]]]]:
    """
    Reads (run, style) for every run of paragraph.

    Returns None when two runs read the same style but carry different run
    properties (superscript, shading, language, theme colours, ...): once
    sorted, their characters could not be given back the right properties.
    """
    seen: Dict[Tuple[Any, ...], bytes] = {}
    formats = []
    for run in paragraph.runs:
        style = read_run_style(run, paragraph)
        rpr = _canonical_rpr(run)
        if seen.setdefault(style_key(style), rpr) != rpr:
            return None
        formats.append((run, style))
    return formats


# --- Scene nodes ---
class ParagraphTextNode(TextNode):
    """
    A plain paragraph as a styled text node. Edits are buffered; flush()
    rewrites the paragraph as one run per equally-styled stretch, copying
    the run properties of the source run that had that style.
    """

    def __init__(self, paragraph: Paragraph, formats: Optional[List[Tuple[Run, Dict[str, Any]]]] = None):
        if formats is None:
            formats = read_run_formats(paragraph)
        if formats is None:
            raise ValueError("Paragraph run properties cannot be told apart by style")

        runs = [run for run, _ in formats]
        super().__init__(
            "".join(run.text for run in runs),
            name=(paragraph.style.name if paragraph.style is not None else None),
            visible=not runs or not all(run.font.hidden for run in runs),
        )
        self.paragraph = paragraph
        self.dirty = False

        # Inherit everything the paragraph style provides
        self.default_style.update(
            font_size=None,
            font_name=FontName(),
            letter_spacing=LetterSpacing(unit="POINTS"),
            line_height=read_line_height(paragraph),
            fills=(),
        )
        self._styles = []
        # style key -> source rPr (None for runs without properties)
        self.templates: Dict[Tuple[Any, ...], Any] = {}
        for run, style in formats:
            self.templates[style_key(style)] = run._r.rPr
            self._styles.extend(dict(style) for _ in run.text)

    @TextNode.characters.setter
    def characters(self, value: str):
        TextNode.characters.fset(self, value)
        self.dirty = True

    def _set(self, attribute: str, start: int, end: int, value: Any):
        super()._set(attribute, start, end, value)
        self.dirty = True

    def flush(self) -> bool:
        if not self.dirty:
            return False

        p = self.paragraph._p
        for r in list(p.r_lst):
            p.remove(r)

        pairs = zip(self._characters, self._styles)
        for key, group in groupby(pairs, key=lambda pair: style_key(pair[1])):
            group = list(group)
            run = self.paragraph.add_run()
            if key in self.templates:
                if self.templates[key] is not None:
                    run._r.append(deepcopy(self.templates[key]))
            else:
                write_run_style(run, group[0][1], self.paragraph)
            run.text = "".join(char for char, _ in group)

        if self._styles:
            write_line_height(self.paragraph, self._styles[0]["line_height"])

        self.dirty = False
        return True


class OpaqueNode:
    """A block the sorter must not rewrite."""

    def __init__(self, type_: str, element: Any):
        self.type = type_
        self.visible = True
        self.element = element


class _BlockContainerNode:
    def __init__(self, type_: str, container: Any, registry: List[ParagraphTextNode], remote: bool = False):
        self.type = type_
        self.visible = True
        self.remote = remote
        self.container = container
        self._registry = registry

    @cached_property
    def children(self) -> List[Any]:
        return [_block_node(item, self._registry) for item in iter_block_items(self.container)]


class TableNode:
    type = "TABLE"

    def __init__(self, table: Table, registry: List[ParagraphTextNode]):
        self.visible = True
        self.table = table
        self._registry = registry

    @cached_property
    def children(self) -> List[Any]:
        cells = []
        seen = set()
        for row in self.table.rows:
            for cell in row.cells:
                # Merged cells are yielded once per grid column
                if cell._tc in seen:
                    continue
                seen.add(cell._tc)
                cells.append(_BlockContainerNode("CELL", cell, self._registry))
        return cells


def _block_node(item: Union[Paragraph, Table], registry: List[ParagraphTextNode]):
    if isinstance(item, Table):
        return TableNode(item, registry)
    if is_plain_paragraph(item):
        formats = read_run_formats(item)
        if formats is not None:
            node = ParagraphTextNode(item, formats)
            registry.append(node)
            return node
        logger.info("Leaving paragraph with indistinguishable run properties", text=item.text[:40])
    return OpaqueNode("PARAGRAPH", item)


class DocumentNode:
    type = "DOCUMENT"

    def __init__(self, doc: DocumentObject, registry: List[ParagraphTextNode]):
        self.visible = True
        self.doc = doc
        self._registry = registry

    @cached_property
    def children(self) -> List[_BlockContainerNode]:
        return [
            _BlockContainerNode(kind, part, self._registry, remote=linked)
            for kind, part, linked in iter_document_parts(self.doc)
        ]


def iter_document_parts(doc: DocumentObject) -> Iterator[Tuple[str, Any, bool]]:
    """
    Yields (kind, part, linked) in reading order: headers, body, footers.
    Headers and footers linked to the previous section are yielded with
    linked=True; they are references to content owned elsewhere.
    """

    def _iter_section_parts(section, attr):
        part = getattr(section, attr)
        yield part, part.is_linked_to_previous

        if section.different_first_page_header_footer:
            first = getattr(section, f"first_page_{attr}")
            yield first, first.is_linked_to_previous

        if doc.settings.odd_and_even_pages_header_footer:
            even = getattr(section, f"even_page_{attr}")
            yield even, even.is_linked_to_previous

    for section in doc.sections:
        for part, linked in _iter_section_parts(section, "header"):
            yield "HEADER", part, linked

    yield "BODY", doc, False

    for section in doc.sections:
        for part, linked in _iter_section_parts(section, "footer"):
            yield "FOOTER", part, linked


def iter_block_items(parent) -> Iterator[Union[Paragraph, Table]]:
    """
    Yields Paragraph or Table objects in the order they appear in the XML.
    Supports Document, Header, Footer, and Cell objects.
    """
    if isinstance(parent, DocumentObject):
        parent_elm = parent.element.body
    elif isinstance(parent, _Cell):
        parent_elm = parent._tc
    elif hasattr(parent, "_element"):
        parent_elm = parent._element
    else:
        raise ValueError(f"Unsupported parent type for iteration: {type(parent)}")

    for child in parent_elm.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, parent)
        elif child.tag == qn("w:tbl"):
            yield Table(child, parent)


def read_font_table(doc: DocumentObject) -> Set[str]:
    """Font family names declared in the package font table."""
    for rel in doc.part.rels.values():
        if rel.reltype == RT.FONT_TABLE and not rel.is_external:
            root = etree.fromstring(rel.target_part.blob)
            return {font.get(qn("w:name")) for font in root.iter(qn("w:font"))}
    return set()


# --- Host ---
class DocxHost:
    """
    Plugin host over a DOCX stream. The whole document is the selection;
    edits reach the package only through save_to_stream().
    """

    def __init__(self, doc_stream: BytesIO, ui: Optional[Any] = None, notify=None, strict_fonts: bool = False):
        doc_stream.seek(0)
        self.doc = Document(doc_stream)
        self.text_nodes: List[ParagraphTextNode] = []
        self.selection = [DocumentNode(self.doc, self.text_nodes)]
        self.ui = ui
        self.strict_fonts = strict_fonts
        self.notifications: List[str] = []
        self._notify = notify
        self.closed = False

    @cached_property
    def font_table(self) -> Set[str]:
        return read_font_table(self.doc)

    def notify(self, message: str):
        logger.info(message)
        self.notifications.append(message)
        if self._notify is not None:
            self._notify(message)

    async def load_font(self, font_name: FontName):
        if self.strict_fonts and font_name.family not in self.font_table:
            raise FontUnavailableError(font_name)
        logger.debug("Font available", family=font_name.family, style=font_name.style)

    def close(self):
        self.closed = True

    def save_to_stream(self) -> BytesIO:
        flushed = sum(1 for node in self.text_nodes if node.flush())
        logger.info(f"Rewrote {flushed} paragraph(s)")

        output = BytesIO()
        self.doc.save(output)
        output.seek(0)
        return output
