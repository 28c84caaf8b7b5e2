"""Data model for loaded modules."""

from .file import (
    File,
    LoadOptions,
    LoadWarning,
    ExpansionContext,
    is_node_module,
    ensure_dotted_relative,
    node_module_globs,
    extra_globs,
)

__all__ = [
    "File",
    "LoadOptions",
    "LoadWarning",
    "ExpansionContext",
    "is_node_module",
    "ensure_dotted_relative",
    "node_module_globs",
    "extra_globs",
]
