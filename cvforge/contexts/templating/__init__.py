"""
Templating Context

Responsibilities:
- Holds the template catalog and color palettes
- Renders a document snapshot into content blocks tagged with atomicity
- Produces the HTML page hosting those blocks for preview and export

Owns: Template catalog, block templates, content tree contract
Never: Measures content or decides page breaks
"""

from cvforge.contexts.templating.content_tree import BlockKind, ContentBlock, ContentTree, TextLine
from cvforge.contexts.templating.renderer import EXPORT, SCREEN, RenderedDocument, render_document
from cvforge.contexts.templating.template_catalog import (
    ColorPalette,
    CVTemplate,
    list_palettes,
    list_templates,
    resolve_palette,
    resolve_template,
)

__all__ = [
    "BlockKind",
    "ContentBlock",
    "ContentTree",
    "TextLine",
    "RenderedDocument",
    "render_document",
    "SCREEN",
    "EXPORT",
    "CVTemplate",
    "ColorPalette",
    "list_templates",
    "list_palettes",
    "resolve_template",
    "resolve_palette",
]
