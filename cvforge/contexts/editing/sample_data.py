"""
Placeholder and sample documents.

Both are stored as YAML under editing/data/ and loaded with OmegaConf.
"""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from omegaconf import OmegaConf

from cvforge.contexts.editing.cv_data_structure import CVDocument

load_dotenv()
EDITING_DATA_PATH = Path(os.getenv("CVFORGE_EDITING_DATA_PATH", Path(__file__).parent / "data"))

DEFAULT_SAMPLE = "professional"


@lru_cache(maxsize=None)
def placeholder_document() -> CVDocument:
    """Document shown when a template is first selected."""
    data = OmegaConf.to_container(OmegaConf.load(EDITING_DATA_PATH / "placeholder.yaml"), resolve=True)
    return CVDocument.from_dict(data)


@lru_cache(maxsize=None)
def _load_samples() -> dict:
    return OmegaConf.to_container(OmegaConf.load(EDITING_DATA_PATH / "samples.yaml"), resolve=True)


def sample_document(template_id: str) -> CVDocument:
    """Sample document for a template's thumbnail; unknown ids get the professional sample."""
    samples = _load_samples()
    return CVDocument.from_dict(samples.get(template_id, samples[DEFAULT_SAMPLE]))
