"""fn-templates: fetch function templates into a local template cache."""

__version__ = "0.1.0"
