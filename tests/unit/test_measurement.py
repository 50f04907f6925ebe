"""Unit tests for block measurement."""

import pytest

from cvforge.contexts.editing.sample_data import sample_document
from cvforge.contexts.rendering.measurement import (
    BLOCK_GAP_PX,
    REGION_PADDING_PX,
    FixedHeightMeasurer,
    Measurement,
    TextMetricsMeasurer,
    measure,
    shift_measurement,
    stack_blocks,
)
from cvforge.contexts.templating.content_tree import BlockKind, ContentBlock, ContentTree, TextLine
from cvforge.contexts.templating.renderer import render_document


def make_tree(*blocks, columns=1):
    regions = {}
    for block in blocks:
        regions.setdefault(block.region, []).append(block)
    return ContentTree("minimal", "slate", columns, tuple((name, tuple(items)) for name, items in regions.items()))


@pytest.mark.unit
def test_stack_blocks_applies_padding_and_gaps():
    tree = make_tree(
        ContentBlock("a", BlockKind.ENTRY, "main", "skills", atomic=True),
        ContentBlock("b", BlockKind.ENTRY, "main", "skills", atomic=True),
    )

    measurement = stack_blocks(tree, {"a": 100, "b": 50})

    assert measurement.box("a").top == REGION_PADDING_PX
    assert measurement.box("b").top == REGION_PADDING_PX + 100 + BLOCK_GAP_PX
    assert measurement.content_height == 2 * REGION_PADDING_PX + 150 + BLOCK_GAP_PX
    assert measurement.trailing_space == REGION_PADDING_PX


@pytest.mark.unit
def test_tallest_region_sets_content_height():
    tree = make_tree(
        ContentBlock("side", BlockKind.ENTRY, "sidebar", "skills", atomic=True),
        ContentBlock("main", BlockKind.ENTRY, "main", "workExperience", atomic=True),
        columns=2,
    )

    measurement = stack_blocks(tree, {"side": 900, "main": 200}, gap=0, padding=0)

    assert measurement.content_height == 900
    assert measurement.regions == ("sidebar", "main")


@pytest.mark.unit
def test_empty_tree_measures_zero():
    tree = ContentTree("minimal", "slate", 1, (("main", ()),))
    measurement = FixedHeightMeasurer().measure_blocks(tree, 794)

    assert measurement.content_height == 0
    assert measurement.boxes == ()
    assert measurement.trailing_space == 0


@pytest.mark.unit
def test_fixed_heights_by_id_then_kind_then_default():
    tree = make_tree(
        ContentBlock("header", BlockKind.HEADER, "main", "header", atomic=True),
        ContentBlock("heading-skills", BlockKind.HEADING, "main", "skills", keep_with_next=True),
        ContentBlock("skills-0", BlockKind.ENTRY, "main", "skills", atomic=True),
    )
    measurer = FixedHeightMeasurer({"header": 150, "entry": 30}, default_height=20)

    boxes = {box.block_id: box.height for box in measurer.measure_blocks(tree, 794).boxes}

    assert boxes == {"header": 150, "heading-skills": 20, "skills-0": 30}
    assert measurer.calls == 1


@pytest.mark.unit
def test_shift_measurement_moves_following_blocks_in_region():
    tree = make_tree(
        ContentBlock("side", BlockKind.ENTRY, "sidebar", "skills", atomic=True),
        ContentBlock("a", BlockKind.ENTRY, "main", "workExperience", atomic=True),
        ContentBlock("b", BlockKind.ENTRY, "main", "workExperience", atomic=True),
        columns=2,
    )
    measurement = stack_blocks(tree, {"side": 100, "a": 100, "b": 100})

    shifted = shift_measurement(measurement, {"a": 50})

    assert shifted.box("side").top == measurement.box("side").top
    assert shifted.box("a").top == measurement.box("a").top + 50
    assert shifted.box("b").top == measurement.box("b").top + 50
    assert shifted.content_height == measurement.content_height + 50


@pytest.mark.unit
def test_text_metrics_wrap_long_lines():
    measurer = TextMetricsMeasurer()
    short = measurer.line_height("Python", "body", 300)
    long = measurer.line_height("Designed and operated services " * 10, "body", 300)

    assert short == 20
    assert long > short
    assert long % 20 == 0


@pytest.mark.unit
def test_text_metrics_fixed_styles_and_empty_lines():
    measurer = TextMetricsMeasurer()

    assert measurer.line_height("", "photo", 300) == 128
    assert measurer.line_height("", "bar", 300) == 12
    assert measurer.line_height("", "body", 300) == 0


@pytest.mark.unit
def test_narrow_region_is_taller():
    block = ContentBlock(
        "summary",
        BlockKind.TEXT,
        "main",
        "summary",
        lines=(TextLine("Backend engineer with nine years of experience building platforms. " * 3),),
    )
    measurer = TextMetricsMeasurer()

    assert measurer.block_height(block, 300) > measurer.block_height(block, 794)


@pytest.mark.unit
def test_text_metrics_measure_rendered_sample():
    rendered = render_document(sample_document("professional"), "professional")
    measurer = TextMetricsMeasurer()

    measurement = measurer.measure_blocks(rendered.tree, 794)

    assert isinstance(measurement, Measurement)
    assert len(measurement.boxes) == len(list(rendered.tree.blocks()))
    assert measure(measurer, rendered.tree, 794) == measurement.content_height
    assert measurement.content_height > 0
