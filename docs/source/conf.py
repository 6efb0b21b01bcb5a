# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

project = "pyroutextract"
copyright = "2024, Mikołaj Kuranowski"
author = "Mikołaj Kuranowski"

extensions = ["sphinx.ext.autodoc"]
autodoc_default_options = {
    "members": True,
    "undoc-members": True,
    "special-members": "__iter__,__len__,__contains__,__str__",
    "show-inheritance": True,
}
autodoc_member_order = "bysource"

templates_path = []
exclude_patterns = []

html_theme = "furo"
html_static_path = []
