"""
Template Renderer

Turns a CVDocument snapshot into a ContentTree of HTML blocks plus the full
HTML page that hosts them. Each block type has its own Jinja2 template under
types/; every block is wrapped by types/block/ which emits the data-block-id,
data-atomic and data-keep-with-next attributes the rendering context relies on.

Modes:
- unbounded=True: natural height at page width (live preview and export)
- unbounded=False: clipped to exactly one A4 page (template thumbnails)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from jinja2 import TemplateError
from markupsafe import Markup

from cvforge.contexts.editing.cv_data_structure import CVDocument, EducationType
from cvforge.contexts.templating.content_tree import BlockKind, ContentBlock, ContentTree, TextLine
from cvforge.contexts.templating.defaults import (
    BULLET_SKILL_TEMPLATES,
    DEFAULT_AVATAR_URL,
    JOB_TITLE_FALLBACK,
    NAME_FALLBACK,
    PRESENT_LABEL,
    SECTION_TITLES,
    SIDEBAR_SECTIONS,
    SINGLE_COLUMN_CONTACT_TITLE,
    skill_percent,
)
from cvforge.contexts.templating.exceptions import TemplateRenderError
from cvforge.contexts.templating.logger import _log_debug, log_render_summary
from cvforge.contexts.templating.registries import TemplateRegistry
from cvforge.contexts.templating.template_catalog import (
    ColorPalette,
    CVTemplate,
    resolve_palette,
    resolve_template,
)
from cvforge.utils.timestamp import format_month_year

SCREEN = "screen"
EXPORT = "export"

# Page box per mode as CSS lengths
PAGE_WIDTH_CSS = {SCREEN: "794px", EXPORT: "210mm"}
PAGE_HEIGHT_CSS = {SCREEN: "1123px", EXPORT: "297mm"}


@dataclass(frozen=True)
class RenderedDocument:
    """
    Result of rendering a document with a template.

    Attributes:
        tree: Content blocks per region
        html: Complete HTML page hosting the blocks
        template: Resolved template
        palette: Resolved color palette
        mode: 'screen' (794px wide) or 'export' (210mm wide)
        unbounded: Natural height (True) or clipped to one page (False)
    """

    tree: ContentTree
    html: str
    template: CVTemplate
    palette: ColorPalette
    mode: str = SCREEN
    unbounded: bool = True

    @property
    def width_css(self) -> str:
        return PAGE_WIDTH_CSS[self.mode]

    @property
    def page_height_css(self) -> str:
        return PAGE_HEIGHT_CSS[self.mode]


def format_date_range(start: str, end: str, current: bool = False) -> str:
    """'Jan 2020 - Present' style range; empty when no dates are set."""
    start_text = format_month_year(start)
    end_text = PRESENT_LABEL if current else format_month_year(end)
    if not start_text and not end_text:
        return ""
    return f"{start_text} - {end_text}"


class _TreeBuilder:
    """Accumulates rendered blocks per region for one render call."""

    def __init__(self, registry: TemplateRegistry, template: CVTemplate):
        self.registry = registry
        self.template = template
        self.regions: Dict[str, List[ContentBlock]] = (
            {"sidebar": [], "main": []} if template.columns == 2 else {"main": []}
        )

    def region_for(self, section: str) -> str:
        if self.template.columns == 2 and section in SIDEBAR_SECTIONS:
            return "sidebar"
        return "main"

    def render(self, type_name: str, **context: Any) -> str:
        try:
            return self.registry.get_template(type_name).render(template=self.template, **context)
        except TemplateError as e:
            raise TemplateRenderError(
                f"Failed to render block type '{type_name}'",
                type_name=type_name,
                template_path=self.registry.get_template_path(type_name),
                original_error=e,
            ) from e

    def add(
        self,
        type_name: str,
        block_id: str,
        kind: BlockKind,
        section: str,
        lines: List[TextLine],
        atomic: bool,
        keep_with_next: bool = False,
        region: Optional[str] = None,
        **context: Any,
    ) -> None:
        body = self.render(type_name, **context)
        html = self.render(
            "block",
            block_id=block_id,
            kind=kind.value,
            atomic=atomic,
            keep_with_next=keep_with_next,
            body=Markup(body),
        )
        region = region or self.region_for(section)
        self.regions[region].append(
            ContentBlock(
                block_id=block_id,
                kind=kind,
                region=region,
                section=section,
                lines=tuple(lines),
                atomic=atomic,
                keep_with_next=keep_with_next,
                html=html,
            )
        )

    def add_heading(self, section: str, title: Optional[str] = None) -> None:
        title = title or SECTION_TITLES[section]
        self.add(
            "section_heading",
            block_id=f"heading-{section}",
            kind=BlockKind.HEADING,
            section=section,
            lines=[TextLine(title, "heading")],
            atomic=False,
            keep_with_next=True,
            title=title,
            underline=self.template.columns == 1 or self.region_for(section) == "sidebar",
        )

    def build_tree(self, color: str) -> ContentTree:
        return ContentTree(
            template_id=self.template.id,
            color=color,
            columns=self.template.columns,
            regions=tuple((name, tuple(blocks)) for name, blocks in self.regions.items()),
        )


def _add_header(builder: _TreeBuilder, document: CVDocument) -> None:
    info = document.personal_info
    template = builder.template
    photo_url = info.photo_url or DEFAULT_AVATAR_URL
    name = info.full_name or NAME_FALLBACK
    job_title = info.job_title or JOB_TITLE_FALLBACK

    # Two-column templates show the photo at the top of the sidebar
    photo_in_sidebar = template.columns == 2 and template.has_photo
    if photo_in_sidebar:
        builder.add(
            "photo",
            block_id="photo",
            kind=BlockKind.HEADER,
            section="header",
            lines=[TextLine("", "photo")],
            atomic=True,
            region="sidebar",
            photo_url=photo_url,
        )

    show_photo = template.has_photo and not photo_in_sidebar
    lines = [TextLine("", "photo")] if show_photo else []
    lines += [TextLine(name, "title"), TextLine(job_title, "subtitle")]
    builder.add(
        "header",
        block_id="header",
        kind=BlockKind.HEADER,
        section="header",
        lines=lines,
        atomic=True,
        region="main",
        name=name,
        job_title=job_title,
        photo_url=photo_url,
        show_photo=show_photo,
        plain=template.id == "minimal",
    )


def _add_contact(builder: _TreeBuilder, document: CVDocument) -> None:
    info = document.personal_info
    candidates = [
        ("email", "@", info.email),
        ("phone", "☎", info.phone),
        ("location", "⌂", info.location_line),
        ("website", "⊕", info.website),
    ]
    items = [{"kind": kind, "icon": icon, "value": value} for kind, icon, value in candidates if value]
    if not items:
        return

    title = SECTION_TITLES["contact"] if builder.template.columns == 2 else SINGLE_COLUMN_CONTACT_TITLE
    builder.add_heading("contact", title)
    builder.add(
        "contact",
        block_id="contact",
        kind=BlockKind.CONTACT,
        section="contact",
        lines=[TextLine(item["value"], "meta") for item in items],
        atomic=True,
        items=items,
    )


def _add_summary(builder: _TreeBuilder, document: CVDocument) -> None:
    summary = document.summary.strip()
    if not summary:
        return
    builder.add_heading("summary")
    builder.add(
        "summary",
        block_id="summary",
        kind=BlockKind.TEXT,
        section="summary",
        lines=[TextLine(summary, "body")],
        atomic=False,
        summary=summary,
    )


def _add_work(builder: _TreeBuilder, document: CVDocument) -> None:
    if not document.work_experience:
        return
    builder.add_heading("workExperience")
    rail = builder.template.id == "creative"
    for index, job in enumerate(document.work_experience):
        dates = format_date_range(job.start_date, job.end_date, job.current)
        lines = [
            TextLine(job.job_title, "title"),
            TextLine(job.company, "subtitle"),
            TextLine(dates, "meta"),
        ]
        lines += [TextLine(line, "body") for line in job.responsibilities.lines()]
        builder.add(
            "work_experience",
            block_id=f"workExperience-{index}",
            kind=BlockKind.ENTRY,
            section="workExperience",
            lines=lines,
            atomic=True,
            job=job,
            dates=dates,
            rail=rail,
            responsibilities=Markup(job.responsibilities.to_html()),
        )


def _add_education(builder: _TreeBuilder, document: CVDocument) -> None:
    if not document.education:
        return
    builder.add_heading("education")
    rail = builder.template.id == "creative"

    # Secondary schooling is listed before tertiary degrees
    ordered = [e for e in document.education if e.education_type == EducationType.SECONDARY]
    ordered += [e for e in document.education if e.education_type != EducationType.SECONDARY]

    for index, edu in enumerate(ordered):
        dates = format_date_range(edu.start_date, edu.end_date)
        lines = [
            TextLine(edu.degree, "title"),
            TextLine(edu.institution, "subtitle"),
            TextLine(edu.location, "meta"),
            TextLine(edu.field_of_study, "meta"),
            TextLine(dates, "meta"),
        ]
        if edu.grade:
            lines.append(TextLine(f"Grade: {edu.grade}", "meta"))
        builder.add(
            "education",
            block_id=f"education-{index}",
            kind=BlockKind.ENTRY,
            section="education",
            lines=[line for line in lines if line.text],
            atomic=True,
            edu=edu,
            dates=dates,
            rail=rail,
        )


def _add_skills(builder: _TreeBuilder, document: CVDocument) -> None:
    if not document.skills:
        return
    builder.add_heading("skills")
    bullet = builder.template.id in BULLET_SKILL_TEMPLATES
    for index, skill in enumerate(document.skills):
        if bullet:
            lines = [TextLine(f"• {skill.name}", "body")]
        else:
            lines = [TextLine(f"{skill.name} {skill.level.value}", "meta"), TextLine("", "bar")]
        builder.add(
            "skill",
            block_id=f"skills-{index}",
            kind=BlockKind.ENTRY,
            section="skills",
            lines=lines,
            atomic=True,
            skill=skill,
            percent=skill_percent(skill.level),
            bullet=bullet,
        )


def _add_simple_entries(builder: _TreeBuilder, document: CVDocument) -> None:
    for index, language in enumerate(document.languages):
        if index == 0:
            builder.add_heading("languages")
        builder.add(
            "language",
            block_id=f"languages-{index}",
            kind=BlockKind.ENTRY,
            section="languages",
            lines=[TextLine(f"{language.name} {language.proficiency.value}", "meta")],
            atomic=True,
            language=language,
        )

    for index, cert in enumerate(document.certifications):
        if index == 0:
            builder.add_heading("certifications")
        date = format_month_year(cert.date)
        lines = [TextLine(cert.name, "subtitle"), TextLine(cert.issuer, "meta"), TextLine(date, "meta")]
        builder.add(
            "certification",
            block_id=f"certifications-{index}",
            kind=BlockKind.ENTRY,
            section="certifications",
            lines=[line for line in lines if line.text],
            atomic=True,
            cert=cert,
            date=date,
        )

    for index, ref in enumerate(document.references):
        if index == 0:
            builder.add_heading("references")
        lines = [TextLine(ref.name, "subtitle")]
        lines += [TextLine(value, "meta") for value in (ref.organization, ref.email, ref.phone) if value]
        builder.add(
            "reference",
            block_id=f"references-{index}",
            kind=BlockKind.ENTRY,
            section="references",
            lines=lines,
            atomic=True,
            ref=ref,
        )


_default_registry: Optional[TemplateRegistry] = None


def _get_registry() -> TemplateRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = TemplateRegistry()
    return _default_registry


def render_document(
    document: CVDocument,
    template_id: str,
    color: Optional[str] = None,
    mode: str = SCREEN,
    unbounded: bool = True,
    registry: Optional[TemplateRegistry] = None,
) -> RenderedDocument:
    """
    Render a document with a template into content blocks and a full HTML page.

    Args:
        document: Document snapshot
        template_id: Template id (unknown ids fall back to the default template)
        color: Palette name (defaults to the template's color; unknown names
               fall back to the default palette)
        mode: 'screen' or 'export'
        unbounded: Natural height (True) or clipped to one A4 page (False)
        registry: Template registry (defaults to the shared packaged registry)

    Returns:
        RenderedDocument

    Raises:
        ValueError: If mode is not 'screen' or 'export'
        TemplateRenderError: If a block template fails to render
    """
    if mode not in PAGE_WIDTH_CSS:
        raise ValueError(f"Unknown render mode: {mode}")

    registry = registry or _get_registry()
    template = resolve_template(template_id)
    palette = resolve_palette(color or template.color)

    builder = _TreeBuilder(registry, template)
    _add_header(builder, document)
    _add_contact(builder, document)
    _add_summary(builder, document)
    _add_work(builder, document)
    _add_education(builder, document)
    _add_skills(builder, document)
    _add_simple_entries(builder, document)

    tree = builder.build_tree(palette.name)
    log_render_summary(tree)

    regions: List[Dict[str, Any]] = [
        {"name": name, "blocks": [Markup(block.html) for block in blocks]} for name, blocks in tree.regions
    ]
    html = builder.render(
        "document",
        title=f"{document.personal_info.full_name or NAME_FALLBACK} - CV",
        css_variables=palette.css_variables(),
        width_css=PAGE_WIDTH_CSS[mode],
        page_height_css=PAGE_HEIGHT_CSS[mode],
        unbounded=unbounded,
        columns=template.columns,
        regions=regions,
    )

    _log_debug(f"Rendered '{template.id}' ({palette.name}, {mode}, unbounded={unbounded})")
    return RenderedDocument(
        tree=tree, html=html, template=template, palette=palette, mode=mode, unbounded=unbounded
    )

