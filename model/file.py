"""File entity model describing one discovered module and its metadata."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


EXPAND_MODES = ("none", "variable", "all")

# Used when a package does not declare a "files" allowlist
DEFAULT_MODULE_GLOBS = ["**/*.js", "**/*.mjs", "**/*.json", "**/*.node"]
EXCLUDED_MODULE_GLOBS = ["!node_modules/"]


@dataclass
class ExpansionContext:
    """Expansion context inherited from the package a request came from."""
    module_root: str
    globs: List[str] = field(default_factory=list)
    expanded: bool = False


@dataclass
class LoadOptions:
    """Per-call options for the loader."""
    load_content: bool = True
    expand: str = "none"
    is_entry: bool = False
    context: Optional[ExpansionContext] = None

    def __post_init__(self):
        if self.expand not in EXPAND_MODES:
            raise ValueError(
                f"Unknown expand mode {self.expand!r}, expected one of {', '.join(EXPAND_MODES)}"
            )


@dataclass
class LoadWarning:
    """Failure value returned by the loader instead of a File."""
    warning: str


class File:
    """
    A single module discovered while loading a dependency graph.

    The absolute path is the identity of the file and never changes once the
    file is created. Dependencies map a specifier (relative path or package
    name) to an optional resolution value; None means the specifier is
    resolved by a later load.
    """

    def __init__(self, abs_path: str):
        self._abs_path = abs_path
        self.real_path: Optional[str] = None
        self.size: Optional[int] = None
        self.real_size: Optional[int] = None
        self.contents: Optional[str] = None
        self._dependencies: Dict[str, Optional[str]] = {}
        self.variable_imports = False
        self._package: Optional[Dict[str, Any]] = None
        self._module_root: Optional[str] = None
        self._context_expanded = False

    @property
    def abs_path(self) -> str:
        """Return the absolute path of the file."""
        return self._abs_path

    @property
    def dependencies(self) -> Dict[str, Optional[str]]:
        """Return a copy of the dependency mapping."""
        return dict(self._dependencies)

    @property
    def package(self) -> Optional[Dict[str, Any]]:
        """Return the parsed manifest of the enclosing package, if attached."""
        return self._package

    @property
    def module_root(self) -> Optional[str]:
        """Return the root directory of the enclosing package, if attached."""
        return self._module_root

    @property
    def context_expanded(self) -> bool:
        """Whether glob expansion has already run for this file."""
        return self._context_expanded

    def add_dependency(self, specifier: str, resolved: Optional[str] = None) -> bool:
        """
        Record a dependency unless the specifier is already known.

        An existing entry is never overwritten, so a resolved value cannot be
        clobbered by a later unresolved one.

        Args:
            specifier: Dependency specifier (relative path or package name).
            resolved: Optional resolution value.

        Returns:
            True if the specifier was added.
        """
        if specifier in self._dependencies:
            return False
        self._dependencies[specifier] = resolved
        return True

    def has_dependency(self, specifier: str) -> bool:
        """Check whether the specifier is already a dependency."""
        return specifier in self._dependencies

    def attach_package(self, package: Dict[str, Any], module_root: str) -> None:
        """Attach the enclosing package manifest and its root directory."""
        self._package = package
        self._module_root = module_root

    def mark_context_expanded(self) -> None:
        """Mark that glob expansion ran for this file."""
        self._context_expanded = True

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly representation of the file."""
        data: Dict[str, Any] = {
            "absPath": self._abs_path,
            "size": self.size,
            "deps": dict(sorted(self._dependencies.items())),
            "variableImports": self.variable_imports,
            "contextExpanded": self._context_expanded,
        }
        if self.real_path is not None:
            data["realPath"] = self.real_path
            data["realSize"] = self.real_size
        if self._module_root is not None:
            data["moduleRoot"] = self._module_root
        if self.contents is not None:
            data["contents"] = self.contents
        return data

    def __contains__(self, specifier: str) -> bool:
        return specifier in self._dependencies

    def __repr__(self) -> str:
        return f"File(abs_path={self._abs_path!r}, deps={len(self._dependencies)}, variable={self.variable_imports})"


def is_node_module(request: str) -> bool:
    """
    Check if a request names a package rather than a path.

    Args:
        request: The specifier as written in the import expression.

    Returns:
        True for bare specifiers such as "lodash" or "@scope/pkg/lib".
    """
    if not request:
        return False
    if request.startswith(("./", "../", "/")) or request in (".", ".."):
        return False
    # Windows drive letters and UNC paths
    if os.path.isabs(request) or request.startswith("\\\\"):
        return False
    return True


def ensure_dotted_relative(from_dir: str, to_path: str) -> str:
    """
    Get to_path relative to from_dir, always explicitly relative.

    The result uses forward slashes and starts with "./" or "../" so it can
    never be mistaken for a package name.
    """
    relative = os.path.relpath(to_path, from_dir).replace("\\", "/")
    if relative == ".":
        relative = "./"
    elif relative != ".." and not relative.startswith(("./", "../")):
        relative = "./" + relative
    return relative


def _as_list(value: Union[str, List[str], None]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [item for item in value if isinstance(item, str)]


def node_module_globs(package: Optional[Dict[str, Any]]) -> List[str]:
    """
    Get the globs describing the files a package ships.

    Uses the manifest "files" allowlist, falling back to every script and JSON
    file. Nested node_modules directories are always excluded.
    """
    files = _as_list((package or {}).get("files"))
    if not files:
        files = list(DEFAULT_MODULE_GLOBS)
    return files + EXCLUDED_MODULE_GLOBS


def extra_globs(package: Optional[Dict[str, Any]]) -> List[str]:
    """Get the asset globs a package declares under "pkg.assets"."""
    config = (package or {}).get("pkg")
    if not isinstance(config, dict):
        return []
    return _as_list(config.get("assets"))
