"""SourceLoupe - rule lifecycle and query resolution engine for tree-sitter trees."""

__version__ = "0.4.0"
