import os
import sys

# Put project root on sys.path so autodoc can import the package if needed
sys.path.insert(0, os.path.abspath("../.."))

project = "fabci"
author = "fabci developers"

extensions = [
    "autoapi.extension",
    "sphinx.ext.doctest",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
]
templates_path = []
exclude_patterns = []

# Fall back to the bundled theme when sphinx_book_theme is not installed.
try:
    import importlib.util

    if importlib.util.find_spec("sphinx_book_theme") is not None:
        html_theme = "sphinx_book_theme"
    else:
        html_theme = "alabaster"
except ImportError:
    html_theme = "alabaster"

master_doc = "index"

# ---------------------------------------------------------------------------
# sphinx-autoapi: API reference for the `fabci` package
# ---------------------------------------------------------------------------
autoapi_type = "python"
# Restrict autoapi to the package source so it doesn't scan the virtualenv.
autoapi_dirs = ["../../fabci"]

autoapi_ignore = [
    "**/docs/**",
    "**/tests/**",
    "**/.venv/**",
    "**/__pycache__/**",
]

autodoc_typehints = "description"

autoapi_options = [
    "members",
    "undoc-members",
    "show-inheritance",
    "show-module-summary",
]

autoapi_python_class_content = "both"
