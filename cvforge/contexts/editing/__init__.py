"""
Editing Context

Responsibilities:
- Owns the structured resume document (immutable snapshots)
- Parses rich text payloads into a typed block/run tree
- Manages editor UI state transitions and section completion tracking

Owns: Document model, wire contract, editor state
Never: Measures, renders, or paginates content
"""

from cvforge.contexts.editing.cv_data_structure import (
    CVDocument,
    Certification,
    Education,
    EducationType,
    InvalidDocumentError,
    Language,
    LanguageProficiency,
    PersonalInfo,
    Reference,
    Skill,
    SkillLevel,
    WorkExperience,
    load_document,
    save_document,
)
from cvforge.contexts.editing.rich_text import RichText, migrate_responsibilities, parse_rich_text

__all__ = [
    # Document model
    "CVDocument",
    "PersonalInfo",
    "WorkExperience",
    "Education",
    "Skill",
    "Language",
    "Certification",
    "Reference",
    "EducationType",
    "SkillLevel",
    "LanguageProficiency",
    "InvalidDocumentError",
    "load_document",
    "save_document",
    # Rich text
    "RichText",
    "parse_rich_text",
    "migrate_responsibilities",
]
