"""
PDF processing utilities for exported resume inspection.

Main class:
    PDFDocument: Parsed PDF with column-based text extraction and search.

Helper functions:
    page_count: Quick page count without full extraction.
    normalize_for_matching: Text normalization for fuzzy matching.
    cluster_by_y_tolerance: Y-coordinate clustering for line detection.
"""

from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Union

import pdfplumber
from PyPDF2 import PdfReader

PDFSource = Union[str, Path, bytes]


def _as_stream(source: PDFSource) -> Union[str, BinaryIO]:
    """Return something both PyPDF2 and pdfplumber can open."""
    if isinstance(source, (bytes, bytearray)):
        return BytesIO(source)
    return str(source)


def page_count(source: PDFSource) -> Optional[int]:
    """Get page count from PDF path or bytes, or None if unreadable."""
    try:
        reader = PdfReader(_as_stream(source))
        return len(reader.pages)
    except Exception:
        return None


def page_size_mm(source: PDFSource, page: int = 1) -> Optional[tuple]:
    """Get (width, height) of a page in millimeters, or None if unreadable."""
    try:
        reader = PdfReader(_as_stream(source))
        box = reader.pages[page - 1].mediabox
    except Exception:
        return None
    points_to_mm = 25.4 / 72
    return (float(box.width) * points_to_mm, float(box.height) * points_to_mm)


def normalize_for_matching(text: str) -> str:
    """Keep only lowercase alphanumeric characters for fuzzy text matching."""
    return "".join(c for c in text.lower() if c.isalnum())


def cluster_by_y_tolerance(chars: List, tolerance: float = 3.0) -> List[List]:
    """Group characters into lines by Y-coordinate proximity."""
    if not chars:
        return []

    sorted_chars = sorted(chars, key=lambda c: c["top"])

    lines = []
    current_line = [sorted_chars[0]]
    current_y = sorted_chars[0]["top"]

    for char in sorted_chars[1:]:
        if abs(char["top"] - current_y) <= tolerance:
            current_line.append(char)
        else:
            lines.append(current_line)
            current_line = [char]
            current_y = char["top"]

    lines.append(current_line)
    return lines


class PDFDocument:
    """
    Parsed PDF with column-based text extraction.

    Characters are binned into columns by x-position and clustered into lines
    by y-position, so two-column layouts do not interleave sidebar and main text.
    Page data is lazily loaded and cached on first access.

    Args:
        source: Path to PDF file or raw PDF bytes
        column_splits: X-coordinate ratios (0.0-1.0) defining column boundaries.
                      [1/3] creates 2 columns (0-33%, 33%-100%).
                      None (default) = single full-width column.
        y_tolerance: Max Y-distance (points) to group characters as same line.

    Example:
        >>> pdf = PDFDocument(artifact.pdf_bytes, column_splits=[1 / 3])
        >>> pdf.find_page("Senior Software Engineer", column=1)
        1
    """

    def __init__(
        self,
        source: PDFSource,
        column_splits: Optional[List[float]] = None,
        y_tolerance: float = 3.0,
    ):
        if isinstance(source, str):
            source = Path(source)
        if isinstance(source, Path) and not source.exists():
            raise FileNotFoundError(f"PDF not found: {source}")

        self.source = source
        self.column_splits = sorted(column_splits or [])
        self.num_columns = len(self.column_splits) + 1
        self.y_tolerance = y_tolerance
        self._pages_cache: Optional[Dict[int, List[List[str]]]] = None
        self._page_count: Optional[int] = None

    @property
    def page_count(self) -> int:
        if self._page_count is None:
            self._page_count = page_count(self.source) or 0
        return self._page_count

    def _extract_pages(self) -> Dict[int, List[List[str]]]:
        """Map page number (1-indexed) to per-column text lines."""
        pages_data: Dict[int, List[List[str]]] = {}

        with pdfplumber.open(_as_stream(self.source)) as pdf:
            for page_num, page in enumerate(pdf.pages, start=1):
                boundaries = (
                    [0.0] + [page.width * ratio for ratio in self.column_splits] + [page.width]
                )

                column_chars: List[List] = [[] for _ in range(self.num_columns)]
                for char in page.chars:
                    x = char["x0"]
                    for col_idx in range(self.num_columns):
                        if boundaries[col_idx] <= x < boundaries[col_idx + 1]:
                            column_chars[col_idx].append(char)
                            break

                pages_data[page_num] = [self._chars_to_lines(chars) for chars in column_chars]

        return pages_data

    def _chars_to_lines(self, chars: List) -> List[str]:
        text_lines = []
        for char_objs in cluster_by_y_tolerance(chars, tolerance=self.y_tolerance):
            char_objs.sort(key=lambda c: c["x0"])
            text_lines.append("".join(c["text"] for c in char_objs))
        return text_lines

    def get_lines(self, page: int, column: int = 0) -> List[str]:
        """
        Text lines for a page and column, top-to-bottom.

        Empty list if page/column doesn't exist.
        """
        if self._pages_cache is None:
            self._pages_cache = self._extract_pages()

        page_data = self._pages_cache.get(page)
        if page_data is None or column >= len(page_data):
            return []
        return page_data[column]

    def get_text(self, page: int, column: int = 0) -> str:
        return "\n".join(self.get_lines(page, column))

    def get_character_stream(self, page: int, column: int = 0) -> str:
        """Normalized character stream for a page column (see normalize_for_matching)."""
        return normalize_for_matching(self.get_text(page, column))

    def find_page(self, text: str, start_page: int = 1, column: int = 0) -> Optional[int]:
        """First page at or after start_page whose column stream contains text, or None."""
        needle = normalize_for_matching(text)
        if not needle:
            return None
        for page in range(start_page, self.page_count + 1):
            if needle in self.get_character_stream(page, column):
                return page
        return None
