"""
CVForge - Resume editor core with block-atomic pagination

Renders structured resume data through interchangeable templates and exports
it as paginated A4 PDFs without splitting entries across pages.

Architecture:
- Editing Context: Document model, rich text, editor state transitions
- Templating Context: Template catalog and rendering to atomic content blocks
- Rendering Context: Pagination, break planning, preview and PDF export
"""

__version__ = "0.1.0"
