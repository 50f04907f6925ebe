"""
CV Document Structure

Defines the structured resume document produced by form-state management and
consumed by the Templating context. Snapshots are immutable: every edit returns
a new CVDocument, so a measurement never observes a half-updated tree.

Field names on the wire (JSON/YAML) are camelCase; attribute names are
snake_case. Each dataclass field records its wire name in metadata.
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from omegaconf import OmegaConf

from cvforge.contexts.editing.rich_text import RichText, migrate_responsibilities


class InvalidDocumentError(ValueError):
    """Raised when document data does not conform to the wire contract."""

    pass


class SkillLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class LanguageProficiency(str, Enum):
    BASIC = "Basic"
    CONVERSATIONAL = "Conversational"
    FLUENT = "Fluent"
    NATIVE = "Native"


class EducationType(str, Enum):
    SECONDARY = "secondary"
    TERTIARY = "tertiary"


def _wire(name: str, **kwargs) -> Any:
    """Dataclass field carrying its camelCase wire name."""
    return field(metadata={"wire": name}, **kwargs)


def _text(name: str) -> Any:
    return _wire(name, default="")


def _enum_value(enum_cls, value: Any, where: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidDocumentError(f"Invalid value {value!r} for {where} (expected one of: {allowed})")


class _WireRecord:
    """Mixin for camelCase dict conversion of flat records."""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        if not isinstance(data, dict):
            raise InvalidDocumentError(f"{cls.__name__} must be a mapping, got {type(data).__name__}")
        kwargs = {}
        for f in fields(cls):
            wire_name = f.metadata.get("wire", f.name)
            if wire_name in data and data[wire_name] is not None:
                kwargs[f.name] = cls._coerce(f.name, data[wire_name])
        return cls(**kwargs)

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        return str(value)

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, RichText):
                value = value.to_html()
            result[f.metadata.get("wire", f.name)] = value
        return result

    def wire_fields(self) -> Dict[str, str]:
        """Map wire name -> attribute name."""
        return {f.metadata.get("wire", f.name): f.name for f in fields(self)}


@dataclass(frozen=True)
class PersonalInfo(_WireRecord):
    full_name: str = _text("fullName")
    job_title: str = _text("jobTitle")
    email: str = _text("email")
    phone: str = _text("phone")
    address: str = _text("address")
    city: str = _text("city")
    province_state: str = _text("provinceState")
    postcode: str = _text("postcode")
    website: str = _text("website")
    photo_url: str = _text("photoUrl")

    @property
    def location_line(self) -> str:
        """
        Address joined for display.

        City, province/state and postcode are formatted as "City, ST 12345"
        when all three are present, otherwise joined with commas.
        """
        if self.city and self.province_state and self.postcode:
            locality = f"{self.city}, {self.province_state} {self.postcode}"
        else:
            locality = ", ".join(p for p in (self.city, self.province_state, self.postcode) if p)
        return ", ".join(p for p in (self.address, locality) if p)


@dataclass(frozen=True)
class WorkExperience(_WireRecord):
    id: str = _text("id")
    job_title: str = _text("jobTitle")
    company: str = _text("company")
    start_date: str = _text("startDate")
    end_date: str = _text("endDate")
    current: bool = _wire("current", default=False)
    responsibilities: RichText = _wire("responsibilities", default_factory=RichText)

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        if name == "responsibilities":
            return migrate_responsibilities(value)
        if name == "current":
            if isinstance(value, str):
                return value.strip().lower() in ("true", "yes", "1")
            return bool(value)
        return super()._coerce(name, value)


@dataclass(frozen=True)
class Education(_WireRecord):
    id: str = _text("id")
    education_type: EducationType = _wire("educationType", default=EducationType.TERTIARY)
    degree: str = _text("degree")
    field_of_study: str = _text("fieldOfStudy")
    institution: str = _text("institution")
    location: str = _text("location")
    start_date: str = _text("startDate")
    end_date: str = _text("endDate")
    grade: str = _text("grade")

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        if name == "education_type":
            return _enum_value(EducationType, value, "educationType")
        return super()._coerce(name, value)


@dataclass(frozen=True)
class Skill(_WireRecord):
    id: str = _text("id")
    name: str = _text("name")
    level: SkillLevel = _wire("level", default=SkillLevel.INTERMEDIATE)

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        if name == "level":
            return _enum_value(SkillLevel, value, "skill level")
        return super()._coerce(name, value)


@dataclass(frozen=True)
class Language(_WireRecord):
    id: str = _text("id")
    name: str = _text("name")
    proficiency: LanguageProficiency = _wire("proficiency", default=LanguageProficiency.CONVERSATIONAL)

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        if name == "proficiency":
            return _enum_value(LanguageProficiency, value, "language proficiency")
        return super()._coerce(name, value)


@dataclass(frozen=True)
class Certification(_WireRecord):
    id: str = _text("id")
    name: str = _text("name")
    issuer: str = _text("issuer")
    date: str = _text("date")
    expiry_date: str = _text("expiryDate")


@dataclass(frozen=True)
class Reference(_WireRecord):
    id: str = _text("id")
    name: str = _text("name")
    email: str = _text("email")
    phone: str = _text("phone")
    organization: str = _text("organization")


# Repeated sections: wire name -> (attribute name, entry class)
ENTRY_SECTIONS = {
    "workExperience": ("work_experience", WorkExperience),
    "education": ("education", Education),
    "skills": ("skills", Skill),
    "languages": ("languages", Language),
    "certifications": ("certifications", Certification),
    "references": ("references", Reference),
}

# Reading order of sections in a rendered document
SECTION_ORDER = [
    "contact",
    "summary",
    "workExperience",
    "education",
    "skills",
    "languages",
    "certifications",
    "references",
]


@dataclass(frozen=True)
class CVDocument:
    """
    Complete resume document snapshot.

    Attributes:
        personal_info: Contact information and headline
        summary: Professional summary (plain text)
        work_experience: Jobs, most recent first
        education: Degrees and schooling
        skills: Skills with level
        languages: Spoken languages with proficiency
        certifications: Certifications with issuer and dates
        references: Professional references
    """

    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    summary: str = ""
    work_experience: Tuple[WorkExperience, ...] = ()
    education: Tuple[Education, ...] = ()
    skills: Tuple[Skill, ...] = ()
    languages: Tuple[Language, ...] = ()
    certifications: Tuple[Certification, ...] = ()
    references: Tuple[Reference, ...] = ()

    # -------------------------------------------------------------------------
    # Wire conversion
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CVDocument":
        """
        Build a document from its camelCase wire representation.

        Raises:
            InvalidDocumentError: If the structure or an enumeration is invalid
        """
        if not isinstance(data, dict):
            raise InvalidDocumentError(f"Document must be a mapping, got {type(data).__name__}")

        kwargs: Dict[str, Any] = {
            "personal_info": PersonalInfo.from_dict(data.get("personalInfo") or {}),
            "summary": str(data.get("summary") or ""),
        }
        for wire_name, (attr, entry_cls) in ENTRY_SECTIONS.items():
            entries = data.get(wire_name) or []
            if not isinstance(entries, (list, tuple)):
                raise InvalidDocumentError(f"'{wire_name}' must be a list")
            kwargs[attr] = tuple(entry_cls.from_dict(entry) for entry in entries)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "personalInfo": self.personal_info.to_dict(),
            "summary": self.summary,
        }
        for wire_name, (attr, _) in ENTRY_SECTIONS.items():
            data[wire_name] = [entry.to_dict() for entry in getattr(self, attr)]
        return data

    # -------------------------------------------------------------------------
    # Snapshot updates
    # -------------------------------------------------------------------------

    def entries(self, section: str) -> Tuple[Any, ...]:
        """Entries of a repeated section by wire name (e.g., "workExperience")."""
        if section not in ENTRY_SECTIONS:
            raise KeyError(f"Unknown section: {section}")
        return getattr(self, ENTRY_SECTIONS[section][0])

    def with_entries(self, section: str, entries) -> "CVDocument":
        if section not in ENTRY_SECTIONS:
            raise KeyError(f"Unknown section: {section}")
        return replace(self, **{ENTRY_SECTIONS[section][0]: tuple(entries)})

    def with_entry_added(self, section: str, entry) -> "CVDocument":
        return self.with_entries(section, self.entries(section) + (entry,))

    def with_entry_removed(self, section: str, entry_id: str) -> "CVDocument":
        return self.with_entries(section, [e for e in self.entries(section) if e.id != entry_id])

    def get_field(self, path: str) -> Any:
        """
        Read a value by dotted wire path.

        Examples:
            doc.get_field("personalInfo.fullName")
            doc.get_field("workExperience.0.company")
        """
        parts = path.split(".")
        head = parts[0]
        if head == "summary" and len(parts) == 1:
            return self.summary
        if head == "personalInfo" and len(parts) == 2:
            return getattr(self.personal_info, _attr_for(self.personal_info, parts[1]))
        if head in ENTRY_SECTIONS and len(parts) == 3:
            entries = self.entries(head)
            index = _index(parts[1], path)
            if index >= len(entries):
                raise KeyError(f"Unknown field path: {path}")
            entry = entries[index]
            return getattr(entry, _attr_for(entry, parts[2]))
        raise KeyError(f"Unknown field path: {path}")

    def with_field(self, path: str, value: Any) -> "CVDocument":
        """Return a new snapshot with the value at a dotted wire path replaced."""
        parts = path.split(".")
        head = parts[0]
        if head == "summary" and len(parts) == 1:
            return replace(self, summary=str(value))
        if head == "personalInfo" and len(parts) == 2:
            info = self.personal_info
            attr = _attr_for(info, parts[1])
            return replace(self, personal_info=replace(info, **{attr: info._coerce(attr, value)}))
        if head in ENTRY_SECTIONS and len(parts) == 3:
            entries = list(self.entries(head))
            index = _index(parts[1], path)
            if index >= len(entries):
                raise KeyError(f"Unknown field path: {path}")
            entry = entries[index]
            attr = _attr_for(entry, parts[2])
            entries[index] = replace(entry, **{attr: entry._coerce(attr, value)})
            return self.with_entries(head, entries)
        raise KeyError(f"Unknown field path: {path}")


def _attr_for(record: _WireRecord, wire_name: str) -> str:
    mapping = record.wire_fields()
    if wire_name not in mapping:
        raise KeyError(f"Unknown field '{wire_name}' on {type(record).__name__}")
    return mapping[wire_name]


def _index(part: str, path: str) -> int:
    if not part.isdigit():
        raise KeyError(f"Expected entry index in field path: {path}")
    return int(part)


def load_document(path: Union[str, Path]) -> CVDocument:
    """
    Load a document from a YAML or JSON file.

    Raises:
        FileNotFoundError: If path does not exist
        InvalidDocumentError: If the content is not a valid document
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document file not found: {path}")

    # User text may contain "${...}"; it is data, never an interpolation
    data = OmegaConf.to_container(OmegaConf.load(path), resolve=False)
    if isinstance(data, dict) and "document" in data:
        data = data["document"]
    return CVDocument.from_dict(data)


def save_document(document: CVDocument, path: Union[str, Path]) -> Path:
    """Save a document as YAML."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    OmegaConf.save(OmegaConf.create(document.to_dict()), path)
    return path
