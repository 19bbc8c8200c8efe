"""
Clipboard Parser - Turns clipboard payloads into a rectangular paste grid

Two payload kinds are understood:
- text/html: the first <table> is read cell by cell with BeautifulSoup, and
  inline styling (style/bgcolor/align attributes, <b>/<i>/<u> and styled
  <span> descendants, <th> header cells) is folded into a CellFormatting per
  cell.
- text/plain: one row per non-blank line, tab separated; comma separated
  (with quoted values) when the first line has commas but no tab.

HTML that is unusable (unclosed table, no table at all) falls back to the
plain-text path. parse() never raises.
"""

import csv
import io
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from task_grid.models import CellFormatting, FormattedCellData, PasteFormatting, SourceFormat
from task_grid.utils.exceptions import MalformedClipboardError
from task_grid.utils.logger import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"[ \t\r\n\f]+")
_TABLE_OPEN = re.compile(r"<table[\s>]", re.IGNORECASE)
_TABLE_CLOSE = re.compile(r"</table\s*>", re.IGNORECASE)

# CSS property -> CellFormatting attribute
_CSS_PROPERTIES = {
    "background-color": "background_color",
    "background": "background_color",
    "color": "text_color",
    "font-weight": "font_weight",
    "font-style": "font_style",
    "border": "border",
    "text-align": "text_align",
    "font-size": "font_size",
    "font-family": "font_family",
    "text-decoration": "text_decoration",
    "text-decoration-line": "text_decoration",
}

_TAG_FORMATTING = {
    "b": CellFormatting(font_weight="bold"),
    "strong": CellFormatting(font_weight="bold"),
    "i": CellFormatting(font_style="italic"),
    "em": CellFormatting(font_style="italic"),
    "u": CellFormatting(text_decoration="underline"),
    "s": CellFormatting(text_decoration="line-through"),
    "strike": CellFormatting(text_decoration="line-through"),
}

_INLINE_STYLED_TAGS = ["span", "font"]


def _normalize_weight(value: str) -> str:
    if value.isdigit():
        return "bold" if int(value) >= 600 else "normal"
    return value


def parse_css(style: Optional[str]) -> CellFormatting:
    """Read the declarations of an inline ``style`` attribute."""
    if not style:
        return CellFormatting()

    values: Dict[str, str] = {}
    for declaration in style.split(";"):
        if ":" not in declaration:
            continue
        prop, _, value = declaration.partition(":")
        attr = _CSS_PROPERTIES.get(prop.strip().lower())
        value = value.replace("!important", "").strip()
        if attr is None or not value:
            continue
        if attr == "font_weight":
            value = _normalize_weight(value)
        elif attr == "font_family":
            value = value.replace('"', "").replace("'", "")
        values[attr] = value
    return CellFormatting(**values)


def _attribute_formatting(tag: Tag) -> CellFormatting:
    formatting = CellFormatting()
    if tag.get("bgcolor"):
        formatting = formatting.merged_with(CellFormatting(background_color=tag["bgcolor"]))
    if tag.get("align"):
        formatting = formatting.merged_with(CellFormatting(text_align=tag["align"].lower()))
    if tag.name == "font" and tag.get("color"):
        formatting = formatting.merged_with(CellFormatting(text_color=tag["color"]))
    return formatting.merged_with(parse_css(tag.get("style")))


def _colspan(value: Optional[str]) -> int:
    try:
        return max(1, min(int(value or 1), 1000))
    except ValueError:
        return 1


def _cell_text(cell: Tag) -> str:
    chunks: List[str] = []
    for node in cell.descendants:
        if isinstance(node, Tag):
            if node.name == "br":
                chunks.append("\n")
        elif isinstance(node, NavigableString) and not isinstance(node, Comment):
            chunks.append(_WHITESPACE.sub(" ", str(node)))
    text = "".join(chunks).replace("\xa0", " ")
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def _inline_formatting(cell: Tag) -> CellFormatting:
    formatting = CellFormatting()
    for tag in cell.find_all(list(_TAG_FORMATTING) + _INLINE_STYLED_TAGS):
        if not tag.get_text(strip=True):
            continue
        if tag.name in _TAG_FORMATTING:
            formatting = formatting.merged_with(_TAG_FORMATTING[tag.name])
        else:
            formatting = formatting.merged_with(_attribute_formatting(tag))
    return formatting


def _cell_data(cell: Tag) -> List[FormattedCellData]:
    formatting = _attribute_formatting(cell)
    if cell.name == "th":
        formatting = formatting.merged_with(CellFormatting(is_header=True))
    formatting = formatting.merged_with(_inline_formatting(cell))

    cells = [FormattedCellData(_cell_text(cell), formatting)]
    cells.extend(FormattedCellData("") for _ in range(_colspan(cell.get("colspan")) - 1))
    return cells


def _own_rows(table: Tag) -> List[Tag]:
    """<tr> elements of ``table`` itself, not of tables nested in its cells."""
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def parse_html_table(html: str) -> List[List[FormattedCellData]]:
    """
    Extract the first table of an HTML fragment as styled cells.

    Raises:
        MalformedClipboardError: no usable table in ``html``
    """
    opened = len(_TABLE_OPEN.findall(html))
    if not opened:
        raise MalformedClipboardError("no table markup")
    if len(_TABLE_CLOSE.findall(html)) < opened:
        raise MalformedClipboardError("unclosed <table>")

    soup = BeautifulSoup(html, "html.parser")
    table = soup.find("table")
    if table is None:
        raise MalformedClipboardError("no table markup")

    rows: List[List[FormattedCellData]] = []
    for tr in _own_rows(table):
        row: List[FormattedCellData] = []
        for cell in tr.find_all(["td", "th"], recursive=False):
            row.extend(_cell_data(cell))
        if row:
            rows.append(row)

    if not rows:
        raise MalformedClipboardError("table has no cells")
    return rows


def _split_lines(text: str, delimiter: str) -> List[List[str]]:
    return [line.split(delimiter) for line in text.splitlines() if line.strip()]


def parse_text(text: str) -> List[List[str]]:
    """
    Split delimited text into rows; blank lines are dropped.

    Quoted values (spreadsheet style, possibly spanning lines) are honoured
    only when every quote in the payload is paired. Otherwise each line is
    one row and quotes are kept as typed.
    """
    if not text:
        return []

    first_line = next((line for line in text.splitlines() if line.strip()), "")
    delimiter = "," if ("," in first_line and "\t" not in first_line) else "\t"

    if text.count('"') % 2:
        logger.debug("Unpaired quote in clipboard text; splitting line by line")
        rows = _split_lines(text, delimiter)
    else:
        rows = []
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
        try:
            for row in reader:
                if any(value.strip() for value in row):
                    rows.append(row)
        except csv.Error as e:
            logger.warning(f"Delimited text could not be read with quoting ({e}); splitting lines")
            rows = _split_lines(text, delimiter)

    if delimiter == ",":
        rows = [[value.strip() for value in row] for row in rows]
    return rows


def _pad(rows: List[list], filler) -> List[list]:
    width = max((len(r) for r in rows), default=0)
    return [list(r) + [filler() for _ in range(width - len(r))] for r in rows]


class ClipboardParser:
    """
    Clipboard payload -> PasteFormatting.

    Usage:
        parser = ClipboardParser()
        paste = parser.parse(html_payload, text_payload)
        if paste.has_formatting:
            ...  # paste.formatted_data holds styles per cell
    """

    def parse(self, clipboard_html: Optional[str], clipboard_text: Optional[str]) -> PasteFormatting:
        if clipboard_html and clipboard_html.strip():
            try:
                cells = _pad(parse_html_table(clipboard_html), lambda: FormattedCellData(""))
                return PasteFormatting(
                    has_formatting=True,
                    raw_data=[[cell.value for cell in row] for row in cells],
                    source_format=SourceFormat.HTML,
                    formatted_data=cells,
                    html_content=clipboard_html,
                )
            except MalformedClipboardError as e:
                logger.warning(f"{e.message}; using the plain-text payload")

        rows = _pad(parse_text(clipboard_text or ""), str)
        return PasteFormatting(
            has_formatting=False,
            raw_data=rows,
            source_format=SourceFormat.TEXT,
        )
