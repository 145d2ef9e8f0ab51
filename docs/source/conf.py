# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys

# -- Path setup --------------------------------------------------------------
sys.path.insert(0, os.path.abspath("../.."))

# -- Project information -----------------------------------------------------
project = "formulary"
author = "formulary contributors"

# -- General configuration ---------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinxcontrib.mermaid",
    "sphinx_immaterial",
]

exclude_patterns: list[str] = []

# -- Options for HTML output -------------------------------------------------
html_theme = "sphinx_immaterial"
html_static_path: list[str] = []

html_theme_options = {
    "font": False,
    "features": [
        "search.suggest",
        "navigation.expand",
        "toc.follow",
    ],
}

# -- Extension configuration -------------------------------------------------

# Google style docstrings only
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_use_rtype = True

autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "undoc-members": False,
}
autodoc_typehints = "description"
# Playwright is only needed to run, not to document
autodoc_mock_imports = ["playwright"]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "pydantic": ("https://docs.pydantic.dev/latest", None),
}
