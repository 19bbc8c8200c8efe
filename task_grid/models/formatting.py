"""
Formatting module - Per-cell style overlays and clipboard paste payloads
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Mapping, Optional

from .enums import SourceFormat

# Attribute name -> serialized key
_FORMAT_KEYS = {
    "background_color": "backgroundColor",
    "text_color": "color",
    "font_weight": "fontWeight",
    "font_style": "fontStyle",
    "border": "border",
    "text_align": "textAlign",
    "font_size": "fontSize",
    "font_family": "fontFamily",
    "text_decoration": "textDecoration",
    "is_header": "isHeader",
}


@dataclass(frozen=True)
class CellFormatting:
    """
    Visual style overlay for one cell. ``None`` means "not set here".
    """
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    font_weight: Optional[str] = None
    font_style: Optional[str] = None
    border: Optional[str] = None
    text_align: Optional[str] = None
    font_size: Optional[str] = None
    font_family: Optional[str] = None
    text_decoration: Optional[str] = None
    is_header: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def merged_with(self, other: "CellFormatting") -> "CellFormatting":
        """Attributes set on ``other`` win; the rest are kept."""
        overrides = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **overrides) if overrides else self

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: getattr(self, attr)
            for attr, key in _FORMAT_KEYS.items()
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CellFormatting":
        values: Dict[str, Any] = {}
        for attr, key in _FORMAT_KEYS.items():
            value = data.get(key, data.get(attr))
            if value is None:
                continue
            values[attr] = bool(value) if attr == "is_header" else str(value)
        return cls(**values)


# No background, inherited text colour, normal weight, left alignment
DEFAULT_FORMATTING = CellFormatting(font_weight="normal", text_align="left")


@dataclass(frozen=True)
class FormattedCellData:
    """A styled cell as extracted from rich clipboard content."""
    value: str
    formatting: CellFormatting = CellFormatting()


@dataclass
class PasteFormatting:
    """
    Normalized clipboard payload handed from the parser to the grid.

    Attributes:
        has_formatting: True when formatted_data carries styles to apply
        raw_data: Rectangular grid of plain values
        source_format: Which clipboard payload kind produced the grid
        formatted_data: Same-shape grid of styled cells (HTML source only)
        html_content: Original HTML, kept for diagnostics
    """
    has_formatting: bool
    raw_data: List[List[str]]
    source_format: SourceFormat = SourceFormat.TEXT
    formatted_data: Optional[List[List[FormattedCellData]]] = None
    html_content: Optional[str] = None

    @classmethod
    def from_values(cls, rows: List[List[Any]]) -> "PasteFormatting":
        """Plain-text payload from an already split grid, padded to a rectangle."""
        width = max((len(r) for r in rows), default=0)
        raw = [["" if v is None else str(v) for v in r] + [""] * (width - len(r)) for r in rows]
        return cls(has_formatting=False, raw_data=raw, source_format=SourceFormat.TEXT)

    @property
    def row_count(self) -> int:
        return len(self.raw_data)

    @property
    def column_count(self) -> int:
        return max((len(r) for r in self.raw_data), default=0)

    @property
    def is_empty(self) -> bool:
        return self.row_count == 0 or self.column_count == 0

    def formatting_at(self, row: int, col: int) -> Optional[CellFormatting]:
        if not self.has_formatting or self.formatted_data is None:
            return None
        try:
            return self.formatted_data[row][col].formatting
        except IndexError:
            return None

    def slice_rows(self, start: int, stop: int) -> "PasteFormatting":
        """Sub-payload covering rows [start, stop); used for chunked pastes."""
        return PasteFormatting(
            has_formatting=self.has_formatting,
            raw_data=self.raw_data[start:stop],
            source_format=self.source_format,
            formatted_data=self.formatted_data[start:stop] if self.formatted_data is not None else None,
            html_content=self.html_content,
        )
