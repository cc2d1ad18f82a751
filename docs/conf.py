"""
Sphinx configuration for wordchain documentation.
"""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SOURCE_ROOT = PROJECT_ROOT / "src"

sys.path.insert(0, str(SOURCE_ROOT))

project = "wordchain"
author = "wordchain Contributors"
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.viewcode",
    "myst_parser",
]
templates_path = ["_templates"]
exclude_patterns = ["_build"]
autodoc_typehints = "description"
html_theme = "alabaster"
master_doc = "index"

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
