"""Loader module for resolving modules and discovering their dependencies."""

from .cache import FileSystemCache
from .errors import LoaderError, ResolutionError, ParseError
from .resolver import Resolved, Resolver, resolve, resolve_sync
from .parser import DependencyExtractor, ExtractResult, gather_dependencies
from .expander import expand, expand_sync
from .node_loader import load, load_sync

__all__ = [
    "FileSystemCache",
    "LoaderError",
    "ResolutionError",
    "ParseError",
    "Resolved",
    "Resolver",
    "resolve",
    "resolve_sync",
    "DependencyExtractor",
    "ExtractResult",
    "gather_dependencies",
    "expand",
    "expand_sync",
    "load",
    "load_sync",
]
