"""
Editor State

Immutable UI state for the editor. Every transition returns a new EditorState;
nothing is mutated in place, so any consumer (preview, export) always sees a
complete snapshot.

Edited-field keys are dotted wire paths ("personalInfo.fullName",
"workExperience.0.company") plus group keys ("personalInfo", "work",
"education", "skills", "summary").
"""

from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Optional
from uuid import uuid4

from cvforge.contexts.editing.cv_data_structure import ENTRY_SECTIONS, CVDocument
from cvforge.contexts.editing.rich_text import RichText
from cvforge.contexts.editing.sample_data import placeholder_document
from cvforge.contexts.templating.template_catalog import resolve_template

# Field path prefix -> group key marked alongside the field
FIELD_GROUPS = {
    "personalInfo.": "personalInfo",
    "workExperience.": "work",
    "education.": "education",
    "skills.": "skills",
}

# Section wire name -> group key
SECTION_GROUPS = {
    "workExperience": "work",
    "education": "education",
    "skills": "skills",
    "languages": "languages",
    "certifications": "certifications",
    "references": "references",
}


@dataclass(frozen=True)
class EditorState:
    """
    Complete editor state snapshot.

    Attributes:
        document: Current document snapshot
        template_id: Selected template (None while choosing)
        color: Selected color palette name
        edited_fields: Keys the user has touched
        preview_mode: True for full-page preview, False for side-by-side editing
    """

    document: CVDocument = field(default_factory=CVDocument)
    template_id: Optional[str] = None
    color: str = "blue"
    edited_fields: FrozenSet[str] = frozenset()
    preview_mode: bool = False

    def is_edited(self, key: str) -> bool:
        return key in self.edited_fields


def _group_keys(path: str) -> FrozenSet[str]:
    keys = {path}
    for prefix, group in FIELD_GROUPS.items():
        if path.startswith(prefix):
            keys.add(group)
    if path == "summary":
        keys.add("summary")
    return frozenset(keys)


def mark_edited(state: EditorState, *keys: str) -> EditorState:
    if all(key in state.edited_fields for key in keys):
        return state
    return replace(state, edited_fields=state.edited_fields | frozenset(keys))


def select_template(state: EditorState, template_id: str, color: Optional[str] = None) -> EditorState:
    """
    Choose a template: loads the placeholder document and resets edits.

    The color is the explicit choice if given, otherwise the template default.
    """
    template = resolve_template(template_id)
    return replace(
        state,
        template_id=template.id,
        document=placeholder_document(),
        edited_fields=frozenset(),
        color=color or template.color,
    )


def clear_template(state: EditorState) -> EditorState:
    return replace(state, template_id=None, preview_mode=False)


def set_color(state: EditorState, color: str) -> EditorState:
    return replace(state, color=color)


def toggle_preview(state: EditorState) -> EditorState:
    return replace(state, preview_mode=not state.preview_mode)


def update_document(state: EditorState, document: CVDocument) -> EditorState:
    return replace(state, document=document)


def edit_field(state: EditorState, path: str, value: Any) -> EditorState:
    """Set a field by dotted wire path and mark it (and its group) edited."""
    state = replace(state, document=state.document.with_field(path, value))
    return mark_edited(state, *_group_keys(path))


def focus_field(state: EditorState, path: str) -> EditorState:
    """
    First focus on an unedited field clears its placeholder value.

    Text fields become "" and rich text becomes empty; enumerated values
    (skill level, proficiency, education type) are never cleared.

    Later focuses leave the value alone.
    """
    if state.is_edited(path):
        return state
    current = state.document.get_field(path)
    if isinstance(current, RichText):
        cleared = RichText()
    elif type(current) is str:
        cleared = ""
    else:
        # Enumerated levels and the current flag keep their value
        cleared = current
    state = replace(state, document=state.document.with_field(path, cleared))
    return mark_edited(state, *_group_keys(path))


def display_value(state: EditorState, path: str) -> Any:
    """Value shown in the form: unedited fields show empty so the hint text is visible."""
    if not state.is_edited(path):
        return ""
    return state.document.get_field(path)


def add_entry(state: EditorState, section: str, **values: Any) -> EditorState:
    """Append a blank entry (with a fresh id) to a repeated section."""
    entry_cls = ENTRY_SECTIONS[section][1]
    entry = entry_cls(id=values.pop("id", uuid4().hex[:8]), **values)
    state = replace(state, document=state.document.with_entry_added(section, entry))
    return mark_edited(state, SECTION_GROUPS[section])


def remove_entry(state: EditorState, section: str, entry_id: str) -> EditorState:
    """Remove an entry; removing the last job also records "work.none"."""
    document = state.document.with_entry_removed(section, entry_id)
    state = mark_edited(replace(state, document=document), SECTION_GROUPS[section])
    if section == "workExperience" and not document.work_experience:
        state = mark_edited(state, "work.none")
    return state
