"""
Template Catalog

Templates and color palettes available to the editor, loaded from
templating/data/templates.yaml. Lookups never fail: unknown identifiers fall
back to the default template or palette and log a warning.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Tuple

from dotenv import load_dotenv
from omegaconf import OmegaConf

from cvforge.contexts.templating.defaults import DEFAULT_PALETTE, DEFAULT_TEMPLATE_ID
from cvforge.contexts.templating.exceptions import InvalidCatalogError
from cvforge.contexts.templating.logger import _log_warning

load_dotenv()
CATALOG_PATH = Path(
    os.getenv("CVFORGE_CATALOG_PATH", Path(__file__).parent / "data" / "templates.yaml")
)

REQUIRED_TEMPLATE_FIELDS = ("id", "name", "columns", "color")
REQUIRED_PALETTE_FIELDS = ("primary", "secondary", "accent")


@dataclass(frozen=True)
class CVTemplate:
    """
    Template descriptor.

    Attributes:
        id: Stable identifier (e.g., 'professional')
        name: Display name
        description: One-line description for the picker
        features: Feature tags for the picker
        has_photo: Whether the header shows a profile photo
        columns: 1 or 2
        color: Default palette name
    """

    id: str
    name: str
    description: str = ""
    features: Tuple[str, ...] = ()
    has_photo: bool = True
    columns: int = 1
    color: str = DEFAULT_PALETTE


@dataclass(frozen=True)
class ColorPalette:
    """HSL component strings ("H, S%, L%") for the template CSS variables."""

    name: str
    label: str
    primary: str
    secondary: str
    accent: str

    def css_variables(self) -> Dict[str, str]:
        return {
            "--template-primary": self.primary,
            "--template-secondary": self.secondary,
            "--template-accent": self.accent,
        }


@lru_cache(maxsize=None)
def load_catalog(path: Path = None) -> Tuple[Dict[str, CVTemplate], Dict[str, ColorPalette]]:
    """
    Load templates and palettes from YAML.

    Returns:
        (templates by id, palettes by name), both in file order

    Raises:
        InvalidCatalogError: If an entry is missing a required field
    """
    path = Path(path or CATALOG_PATH)
    data = OmegaConf.to_container(OmegaConf.load(path), resolve=True)

    templates: Dict[str, CVTemplate] = {}
    for entry in data.get("templates", []):
        missing = [key for key in REQUIRED_TEMPLATE_FIELDS if key not in entry]
        if missing:
            raise InvalidCatalogError(f"Template entry missing {missing} in {path}")
        columns = int(entry["columns"])
        if columns not in (1, 2):
            raise InvalidCatalogError(f"Template '{entry['id']}' has unsupported columns: {columns}")
        templates[entry["id"]] = CVTemplate(
            id=entry["id"],
            name=entry["name"],
            description=entry.get("description", ""),
            features=tuple(entry.get("features", [])),
            has_photo=bool(entry.get("hasPhoto", True)),
            columns=columns,
            color=entry["color"],
        )

    palettes: Dict[str, ColorPalette] = {}
    for name, entry in (data.get("palettes") or {}).items():
        missing = [key for key in REQUIRED_PALETTE_FIELDS if key not in entry]
        if missing:
            raise InvalidCatalogError(f"Palette '{name}' missing {missing} in {path}")
        palettes[name] = ColorPalette(
            name=name,
            label=entry.get("label", name.title()),
            primary=entry["primary"],
            secondary=entry["secondary"],
            accent=entry["accent"],
        )

    if DEFAULT_TEMPLATE_ID not in templates or DEFAULT_PALETTE not in palettes:
        raise InvalidCatalogError(
            f"Catalog must define template '{DEFAULT_TEMPLATE_ID}' and palette '{DEFAULT_PALETTE}'"
        )

    return templates, palettes


def list_templates() -> List[CVTemplate]:
    return list(load_catalog()[0].values())


def list_palettes() -> List[ColorPalette]:
    return list(load_catalog()[1].values())


def resolve_template(template_id: str) -> CVTemplate:
    """Template by id; unknown ids resolve to the default template."""
    templates = load_catalog()[0]
    if template_id in templates:
        return templates[template_id]
    _log_warning(f"Unknown template '{template_id}', using '{DEFAULT_TEMPLATE_ID}'")
    return templates[DEFAULT_TEMPLATE_ID]


def resolve_palette(name: str) -> ColorPalette:
    """
    Palette by name; unknown names resolve to the default palette.

    Template default colors outside the palette set (e.g., 'purple') render
    with the default palette.
    """
    palettes = load_catalog()[1]
    if name in palettes:
        return palettes[name]
    _log_warning(f"Unknown color '{name}', using '{DEFAULT_PALETTE}'")
    return palettes[DEFAULT_PALETTE]
