"""Unit tests for the template catalog and palettes."""

import pytest

from cvforge.contexts.templating.exceptions import InvalidCatalogError
from cvforge.contexts.templating.template_catalog import (
    list_palettes,
    list_templates,
    load_catalog,
    resolve_palette,
    resolve_template,
)


@pytest.mark.unit
def test_catalog_lists_templates_in_file_order():
    ids = [template.id for template in list_templates()]
    assert ids == ["professional", "creative", "executive", "minimal", "modern-bullets"]


@pytest.mark.unit
def test_template_descriptors():
    professional = resolve_template("professional")
    minimal = resolve_template("minimal")

    assert professional.columns == 2
    assert professional.color == "blue"
    assert "Sidebar" in professional.features
    assert minimal.columns == 1
    assert minimal.has_photo is False


@pytest.mark.unit
def test_unknown_template_falls_back_to_default():
    assert resolve_template("brutalist").id == "professional"


@pytest.mark.unit
def test_palettes_and_css_variables():
    names = [palette.name for palette in list_palettes()]
    assert names == ["slate", "rose", "emerald", "sand", "blue", "orange"]

    blue = resolve_palette("blue")
    assert blue.css_variables() == {
        "--template-primary": "217, 91%, 60%",
        "--template-secondary": "217, 91%, 95%",
        "--template-accent": "217, 91%, 50%",
    }


@pytest.mark.unit
def test_unknown_palette_falls_back_to_slate():
    # creative's default color is not one of the palettes
    assert resolve_palette(resolve_template("creative").color).name == "slate"


@pytest.mark.unit
def test_template_missing_fields_rejected(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text("templates:\n  - id: broken\n    name: Broken\n")

    with pytest.raises(InvalidCatalogError, match="missing"):
        load_catalog(path)


@pytest.mark.unit
def test_unsupported_column_count_rejected(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text("templates:\n  - {id: wide, name: Wide, columns: 3, color: slate}\n")

    with pytest.raises(InvalidCatalogError, match="columns"):
        load_catalog(path)


@pytest.mark.unit
def test_catalog_without_defaults_rejected(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "templates:\n"
        "  - {id: solo, name: Solo, columns: 1, color: ink}\n"
        "palettes:\n"
        "  ink: {primary: '0, 0%, 0%', secondary: '0, 0%, 95%', accent: '0, 0%, 10%'}\n"
    )

    with pytest.raises(InvalidCatalogError, match="professional"):
        load_catalog(path)
