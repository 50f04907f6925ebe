#!/usr/bin/env python3
"""
Resume Layout and Export CLI

Renders resume documents with the template catalog, reports their pagination,
and exports them to multi-page A4 PDFs.

Commands:
    layout    - Estimate page count and planned page breaks for a document
    preview   - Write the rendered HTML page for a document
    export    - Export a document to PDF with headless Chromium
    templates - List templates and color palettes
    sample    - Write a template's sample document as YAML

Documents are YAML or JSON files in the editor's wire format. Commands that
take a document fall back to the template's sample document when none is given.

Examples:\n

    cvforge.py layout my_cv.yaml --template executive        # Page count and breaks

    cvforge.py preview my_cv.yaml -o preview.html            # Rendered HTML

    cvforge.py export my_cv.yaml --template creative -c rose # Export to PDF

    cvforge.py sample minimal -o minimal.yaml                # Start from a sample
"""

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from cvforge.contexts.editing.cv_data_structure import InvalidDocumentError, load_document, save_document
from cvforge.contexts.editing.progress import compute_progress
from cvforge.contexts.editing.sample_data import sample_document
from cvforge.contexts.rendering.break_planner import plan_page_breaks
from cvforge.contexts.rendering.exporter import ExportDriver, export_resume
from cvforge.contexts.rendering.layout_diagnostics import analyze_block_layout
from cvforge.contexts.rendering.measurement import TextMetricsMeasurer, shift_measurement
from cvforge.contexts.rendering.pagination import LayoutParams, PageHeightMode, layout_for
from cvforge.contexts.templating.defaults import DEFAULT_TEMPLATE_ID
from cvforge.contexts.templating.logger import setup_templating_logger
from cvforge.contexts.templating.renderer import render_document
from cvforge.contexts.templating.template_catalog import list_palettes, list_templates
from cvforge.utils.logger import session_log_dir

load_dotenv()

app = typer.Typer(
    help="Render, paginate and export resumes",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load(document_path: Optional[Path], template_id: str):
    """Load a document file, or the template's sample when no path is given."""
    if document_path is None:
        return sample_document(template_id)
    try:
        return load_document(document_path)
    except (FileNotFoundError, InvalidDocumentError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


DocumentArg = Annotated[
    Optional[Path],
    typer.Argument(help="Document file (YAML or JSON); defaults to the template's sample"),
]
TemplateOpt = Annotated[str, typer.Option("--template", "-t", help="Template id")]
ColorOpt = Annotated[
    Optional[str],
    typer.Option("--color", "-c", help="Color palette (default: the template's color)"),
]


@app.command("layout")
def layout_command(
    document_path: DocumentArg = None,
    template_id: TemplateOpt = DEFAULT_TEMPLATE_ID,
    color: ColorOpt = None,
    mode: Annotated[
        PageHeightMode,
        typer.Option("--mode", "-m", help="Page height: screen (1123px) or export (297mm)"),
    ] = PageHeightMode.SCREEN,
):
    """
    Estimate page count and planned page breaks.

    Measures blocks with font metrics (no browser), plans page breaks and
    verifies the planned layout.

    Examples:\n

        $ cvforge.py layout my_cv.yaml                    # Professional template

        $ cvforge.py layout my_cv.yaml -t minimal -m export
    """
    document = _load(document_path, template_id)
    params = LayoutParams.for_mode(mode)
    rendered = render_document(document, template_id, color, mode=params.mode.value)

    measurement = TextMetricsMeasurer().measure_blocks(rendered.tree, params.page_width)
    natural = layout_for(measurement.content_height, params)
    plan = plan_page_breaks(rendered.tree, measurement, params.page_height, params.epsilon)
    planned = shift_measurement(measurement, plan.shifts)
    layout = layout_for(planned.content_height, params)
    diagnostics = analyze_block_layout(
        rendered.tree, planned, params.page_height, params.epsilon, layout.page_count
    )

    typer.secho(f"\nLayout: {rendered.template.name} ({rendered.palette.label})", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"  Content height: {measurement.content_height:.0f}px (page {params.page_height:.0f}px)")
    typer.echo(f"  Pages: {natural.page_count} unplanned, {layout.page_count} with page breaks")
    typer.echo(f"  Snapped height: {layout.snapped_height:.0f}px")

    for spacer in plan.spacers:
        typer.echo(f"  - '{spacer.before_block_id}' pushed {spacer.height:.0f}px ({spacer.reason})")

    issues = diagnostics.get_inherited_issues()
    for issue in issues:
        typer.secho(f"  ! {issue}", fg=typer.colors.YELLOW)

    progress = compute_progress(document)
    typer.echo(f"  Completion: {progress.percentage}%")
    typer.echo("")


@app.command("preview")
def preview_command(
    document_path: DocumentArg = None,
    template_id: TemplateOpt = DEFAULT_TEMPLATE_ID,
    color: ColorOpt = None,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="HTML output path"),
    ] = Path("preview.html"),
    single_page: Annotated[
        bool,
        typer.Option("--single-page", help="Clip to one A4 page (thumbnail mode)"),
    ] = False,
):
    """
    Write the rendered HTML page for a document.

    Examples:\n

        $ cvforge.py preview my_cv.yaml -o preview.html

        $ cvforge.py preview -t creative --single-page    # Sample thumbnail
    """
    setup_templating_logger(session_log_dir("preview"), template_id)
    document = _load(document_path, template_id)
    rendered = render_document(document, template_id, color, unbounded=not single_page)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(rendered.html, encoding="utf-8")
    typer.secho(f"✓ Preview written: {output}", fg=typer.colors.GREEN, bold=True)


@app.command("export")
def export_command(
    document_path: DocumentArg = None,
    template_id: TemplateOpt = DEFAULT_TEMPLATE_ID,
    color: ColorOpt = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Output directory (default: outs/results/<date>)"),
    ] = None,
    no_verify: Annotated[
        bool,
        typer.Option("--no-verify", help="Skip checking block text per PDF page"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show every layout issue"),
    ] = False,
):
    """
    Export a document to a multi-page A4 PDF.

    Requires Chromium for Playwright (playwright install chromium).

    Examples:\n

        $ cvforge.py export my_cv.yaml                      # Professional template

        $ cvforge.py export my_cv.yaml -t executive -v      # Show all issues
    """
    document = _load(document_path, template_id)

    typer.secho(f"\nExporting with template: {template_id}", fg=typer.colors.BLUE, bold=True)
    result = export_resume(
        document,
        template_id,
        color=color,
        output_dir=output_dir,
        driver=ExportDriver(verify_text=not no_verify),
        verbose=verbose,
    )

    if result.success:
        typer.secho("✓ Export succeeded", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Pages: {result.page_count}")
        typer.echo(f"  PDF: {result.pdf_path}")
        if result.issues:
            typer.secho(f"  Layout issues: {len(result.issues)}", fg=typer.colors.YELLOW)
            for issue in result.issues if verbose else result.issues[:5]:
                typer.echo(f"  - {issue}")
    else:
        typer.secho("✗ Export failed, please try again", fg=typer.colors.RED, bold=True)
        for error in result.errors:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
    typer.echo("")

    raise typer.Exit(code=0 if result.success else 1)


@app.command("templates")
def templates_command():
    """List templates and color palettes."""
    typer.secho("\nTemplates:", fg=typer.colors.BLUE, bold=True)
    for template in list_templates():
        photo = "photo" if template.has_photo else "no photo"
        typer.echo(
            f"  {template.id:<16} {template.name:<16} {template.columns} column(s), {photo}, {template.color}"
        )
        if template.description:
            typer.echo(f"  {'':<16} {template.description}")

    typer.secho("\nColor palettes:", fg=typer.colors.BLUE, bold=True)
    for palette in list_palettes():
        typer.echo(f"  {palette.name:<16} {palette.label:<16} hsl({palette.primary})")
    typer.echo("")


@app.command("sample")
def sample_command(
    template_id: Annotated[str, typer.Argument(help="Template id")] = DEFAULT_TEMPLATE_ID,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="YAML output path"),
    ] = Path("sample_cv.yaml"),
):
    """
    Write a template's sample document as YAML.

    Examples:\n

        $ cvforge.py sample executive -o my_cv.yaml
    """
    path = save_document(sample_document(template_id), output)
    typer.secho(f"✓ Sample written: {path}", fg=typer.colors.GREEN, bold=True)


if __name__ == "__main__":
    app()
