"""
Rich Text Model

Typed block/run tree for the restricted inline markup used in user-supplied
rich text (job responsibilities). Markup is parsed once at the model boundary
and serialized back on output, so rendering and measurement never re-derive
structure from raw HTML.

Supported subset:
- Blocks: <p>, <ul>, <ol>, <li> (one level of list nesting)
- Inline: <strong>/<b> (bold), <em>/<i> (italic)

Anything else passes through as plain text. Parsing never raises.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment
from markupsafe import escape

BOLD_TAGS = {"strong", "b"}
ITALIC_TAGS = {"em", "i"}
LIST_TAGS = {"ul", "ol"}
DROPPED_TAGS = {"script", "style", "head", "title", "template"}

# Unknown tags that start a new block rather than continuing inline text
BLOCK_LIKE_TAGS = {
    "div", "section", "article", "blockquote", "pre", "table", "tr",
    "h1", "h2", "h3", "h4", "h5", "h6", "header", "footer",
}

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class TextRun:
    """A run of text with uniform inline styling."""

    text: str
    bold: bool = False
    italic: bool = False

    def to_html(self) -> str:
        html = str(escape(self.text))
        if self.italic:
            html = f"<em>{html}</em>"
        if self.bold:
            html = f"<strong>{html}</strong>"
        return html


Runs = Tuple[TextRun, ...]


def _runs_text(runs: Runs) -> str:
    return "".join(run.text for run in runs).strip()


def _runs_html(runs: Runs) -> str:
    return "".join(run.to_html() for run in runs)


@dataclass(frozen=True)
class Paragraph:
    runs: Runs = ()

    @property
    def text(self) -> str:
        return _runs_text(self.runs)

    def to_html(self) -> str:
        return f"<p>{_runs_html(self.runs)}</p>"


@dataclass(frozen=True)
class ListItem:
    runs: Runs = ()

    @property
    def text(self) -> str:
        return _runs_text(self.runs)

    def to_html(self) -> str:
        return f"<li>{_runs_html(self.runs)}</li>"


@dataclass(frozen=True)
class ListBlock:
    ordered: bool = False
    items: Tuple[ListItem, ...] = ()

    def to_html(self) -> str:
        tag = "ol" if self.ordered else "ul"
        return f"<{tag}>{''.join(item.to_html() for item in self.items)}</{tag}>"


Block = Union[Paragraph, ListBlock]


@dataclass(frozen=True)
class RichText:
    """
    Parsed rich text payload.

    Attributes:
        blocks: Ordered paragraphs and lists
    """

    blocks: Tuple[Block, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.to_plaintext()

    def to_html(self) -> str:
        """Serialize back to the supported markup subset."""
        return "".join(block.to_html() for block in self.blocks)

    def lines(self) -> List[str]:
        """
        One logical line per paragraph or list item.

        List items carry a bullet ("• ") or number ("1. ") prefix so that
        measured widths match the rendered output.
        """
        result = []
        for block in self.blocks:
            if isinstance(block, Paragraph):
                if block.text:
                    result.append(block.text)
                continue
            for number, item in enumerate(block.items, start=1):
                if not item.text:
                    continue
                prefix = f"{number}. " if block.ordered else "• "
                result.append(prefix + item.text)
        return result

    def to_plaintext(self) -> str:
        return "\n".join(self.lines())


# =============================================================================
# Parsing
# =============================================================================


class _RunCollector:
    """Accumulates runs, merging neighbours with identical styling."""

    def __init__(self):
        self.runs: List[TextRun] = []

    def add(self, text: str, bold: bool, italic: bool) -> None:
        text = _WHITESPACE.sub(" ", text)
        if not text:
            return
        if self.runs and (self.runs[-1].bold, self.runs[-1].italic) == (bold, italic):
            previous = self.runs.pop()
            text = previous.text + text
        self.runs.append(TextRun(text=text, bold=bold, italic=italic))

    def take(self) -> Runs:
        """Return collected runs with outer whitespace trimmed, then reset."""
        runs = self.runs
        self.runs = []
        if not runs:
            return ()

        first, last = runs[0], runs[-1]
        runs[0] = TextRun(first.text.lstrip(), first.bold, first.italic)
        runs[-1] = TextRun(runs[-1].text.rstrip(), last.bold, last.italic)
        return tuple(run for run in runs if run.text)


def _collect_inline(node: Any, collector: _RunCollector, bold: bool, italic: bool) -> None:
    """Walk inline content, flattening any tag that is not bold/italic."""
    if isinstance(node, Comment):
        return
    if isinstance(node, NavigableString):
        collector.add(str(node), bold, italic)
        return
    if not isinstance(node, Tag) or node.name in DROPPED_TAGS:
        return
    if node.name == "br":
        collector.add(" ", bold, italic)
        return

    bold = bold or node.name in BOLD_TAGS
    italic = italic or node.name in ITALIC_TAGS
    for child in node.children:
        _collect_inline(child, collector, bold, italic)


def _is_bullet_item(item: Tag) -> bool:
    return item.get("data-list") == "bullet"


def _collect_list(node: Tag, items: List[ListItem]) -> None:
    """Collect <li> content; nested lists are flattened into the same list."""
    for child in node.children:
        if not isinstance(child, Tag):
            continue
        if child.name in LIST_TAGS:
            _collect_list(child, items)
            continue
        if child.name != "li":
            collector = _RunCollector()
            _collect_inline(child, collector, False, False)
            runs = collector.take()
            if runs:
                items.append(ListItem(runs=runs))
            continue

        collector = _RunCollector()
        nested = []
        for grandchild in child.children:
            if isinstance(grandchild, Tag) and grandchild.name in LIST_TAGS:
                nested.append(grandchild)
            else:
                _collect_inline(grandchild, collector, False, False)
        runs = collector.take()
        if runs:
            items.append(ListItem(runs=runs))
        for nested_list in nested:
            _collect_list(nested_list, items)


def _list_blocks(node: Tag) -> List[ListBlock]:
    """
    Build list blocks for a <ul>/<ol>.

    Quill marks bullet items inside <ol> with data-list="bullet"; consecutive
    items of the same kind become one block.
    """
    items: List[ListItem] = []
    _collect_list(node, items)
    if not items:
        return []

    direct_items = [child for child in node.children if isinstance(child, Tag) and child.name == "li"]
    if node.name == "ol" and direct_items and all(_is_bullet_item(li) for li in direct_items):
        return [ListBlock(ordered=False, items=tuple(items))]
    return [ListBlock(ordered=node.name == "ol", items=tuple(items))]


def _walk_blocks(container: Any, blocks: List[Block], collector: _RunCollector) -> None:
    def flush() -> None:
        runs = collector.take()
        if runs:
            blocks.append(Paragraph(runs=runs))

    for node in container.children:
        if isinstance(node, Tag) and node.name in DROPPED_TAGS:
            continue
        if isinstance(node, Tag) and node.name in LIST_TAGS:
            flush()
            blocks.extend(_list_blocks(node))
        elif isinstance(node, Tag) and node.name == "p":
            flush()
            _collect_inline(node, collector, False, False)
            flush()
        elif isinstance(node, Tag) and node.name == "li":
            flush()
            blocks.extend(_list_blocks_from_orphan(node))
        elif isinstance(node, Tag) and node.name in BLOCK_LIKE_TAGS:
            flush()
            _walk_blocks(node, blocks, collector)
            flush()
        else:
            _collect_inline(node, collector, False, False)
    flush()


def _list_blocks_from_orphan(item: Tag) -> List[ListBlock]:
    """An <li> outside any list is treated as a one-item bullet list."""
    collector = _RunCollector()
    _collect_inline(item, collector, False, False)
    runs = collector.take()
    return [ListBlock(ordered=False, items=(ListItem(runs=runs),))] if runs else []


def _merge_adjacent_lists(blocks: List[Block]) -> Tuple[Block, ...]:
    merged: List[Block] = []
    for block in blocks:
        previous = merged[-1] if merged else None
        if (
            isinstance(block, ListBlock)
            and isinstance(previous, ListBlock)
            and previous.ordered == block.ordered
        ):
            merged[-1] = ListBlock(ordered=block.ordered, items=previous.items + block.items)
        else:
            merged.append(block)
    return tuple(merged)


def parse_rich_text(markup: Optional[str]) -> RichText:
    """
    Parse restricted markup into a RichText tree.

    Args:
        markup: HTML-like string (may be malformed or contain unsupported tags)

    Returns:
        RichText (empty for None/blank input)

    Example:
        >>> parse_rich_text("<ul><li><strong>Led</strong> a team</li></ul>").lines()
        ['• Led a team']
    """
    if not markup or not markup.strip():
        return RichText()

    soup = BeautifulSoup(markup, "html.parser")
    blocks: List[Block] = []
    _walk_blocks(soup, blocks, _RunCollector())
    return RichText(blocks=_merge_adjacent_lists(blocks))


def migrate_responsibilities(value: Any) -> RichText:
    """
    Normalize responsibilities from any stored format.

    Older documents stored responsibilities as a list of strings; these become
    a bullet list. Strings are parsed as markup. Anything else is empty.
    """
    if isinstance(value, RichText):
        return value
    if isinstance(value, str):
        return parse_rich_text(value)
    if isinstance(value, (list, tuple)):
        items = tuple(
            ListItem(runs=(TextRun(text=str(item).strip()),))
            for item in value
            if item is not None and str(item).strip()
        )
        if not items:
            return RichText()
        return RichText(blocks=(ListBlock(ordered=False, items=items),))
    return RichText()
