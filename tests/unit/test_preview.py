"""Unit tests for live preview recomputation."""

import pytest

from cvforge.contexts.editing.cv_data_structure import CVDocument, PersonalInfo, WorkExperience
from cvforge.contexts.editing.editor_state import EditorState, add_entry, remove_entry, set_color
from cvforge.contexts.rendering.measurement import FixedHeightMeasurer
from cvforge.contexts.rendering.pagination import PageHeightMode, mm_to_px
from cvforge.contexts.rendering.preview import PreviewSession, preview_scale


def jobs_state(count):
    document = CVDocument(
        personal_info=PersonalInfo(full_name="Ada"),
        work_experience=tuple(WorkExperience(id=f"w{i}", job_title="Engineer") for i in range(count)),
    )
    return EditorState(document=document, template_id="minimal")


def entry_measurer():
    """Each job 300px, everything else zero height."""
    return FixedHeightMeasurer({"entry": 300}, default_height=0, gap=0, padding=0)


@pytest.mark.unit
def test_session_paginates_on_creation():
    session = PreviewSession(jobs_state(5), entry_measurer())

    assert session.measurement.content_height == 1500
    assert session.layout.page_count == 2
    assert session.layout.snapped_height == 2245


@pytest.mark.unit
def test_resize_remeasures_without_changing_page_count():
    measurer = entry_measurer()
    session = PreviewSession(jobs_state(5), measurer)
    before = session.layout

    after = session.resize(397)

    assert measurer.calls == 2
    assert after.page_count == before.page_count
    assert after.snapped_height == before.snapped_height
    assert session.scale == 0.5


@pytest.mark.unit
def test_every_transition_recomputes():
    measurer = entry_measurer()
    session = PreviewSession(jobs_state(5), measurer)

    session.dispatch(remove_entry, "workExperience", "w0")
    session.dispatch(remove_entry, "workExperience", "w1")
    assert session.layout.page_count == 1

    session.dispatch(add_entry, "workExperience", job_title="Architect")
    session.dispatch(add_entry, "workExperience", job_title="Lead")
    assert session.layout.page_count == 2

    session.dispatch(set_color, "rose")
    assert session.rendered.palette.name == "rose"
    assert measurer.calls == 6


@pytest.mark.unit
def test_zero_height_defers_pagination():
    session = PreviewSession(jobs_state(0), FixedHeightMeasurer(default_height=0, gap=0, padding=0))

    assert session.layout.deferred
    assert session.layout.page_count == 1


@pytest.mark.unit
def test_mode_switch_uses_export_geometry():
    session = PreviewSession(jobs_state(5), entry_measurer())

    layout = session.set_mode("export")

    assert session.params.mode == PageHeightMode.EXPORT
    assert session.rendered.mode == "export"
    assert layout.page_height == pytest.approx(mm_to_px(297))
    assert layout.page_count == 2


@pytest.mark.unit
def test_unselected_template_previews_default():
    session = PreviewSession(EditorState(), entry_measurer())

    assert session.template_id == "professional"
    assert session.rendered.template.id == "professional"


@pytest.mark.unit
@pytest.mark.parametrize("width, expected", [(794, 1.0), (397, 0.5), (2000, 1.0), (0, 1.0)])
def test_preview_scale(width, expected):
    assert preview_scale(width) == expected
