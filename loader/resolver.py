"""Node-style path resolution for module specifiers."""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from model.file import is_node_module
from .cache import FileSystemCache
from .errors import ResolutionError


logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".js", ".json", ".node")
DEFAULT_MAIN_FIELDS = ("main",)
DEFAULT_MAIN_FILES = ("index",)
DEFAULT_CONDITIONS = ("require", "node", "default")
MANIFEST_NAME = "package.json"
MODULES_DIR = "node_modules"


@dataclass
class Resolved:
    """
    Outcome of resolving one specifier.

    Either abs_path is set, or warning explains why resolution failed.
    """
    abs_path: str = ""
    pkg_path: str = ""
    pkg: Optional[Dict[str, Any]] = None
    warning: str = ""

    @property
    def ok(self) -> bool:
        return bool(self.abs_path)


def split_package_request(request: str) -> Tuple[str, str]:
    """
    Split a bare specifier into package name and subpath.

    Args:
        request: A bare specifier such as "@scope/pkg/lib/util".

    Returns:
        Tuple of (package name, subpath), e.g. ("@scope/pkg", "lib/util").
    """
    parts = request.split("/")
    count = 2 if request.startswith("@") and len(parts) > 1 else 1
    return "/".join(parts[:count]), "/".join(parts[count:])


class Resolver:
    """
    Resolves specifiers the way Node resolves require() calls.

    Relative and absolute specifiers are tried as a file (exact name, then each
    configured extension) and then as a directory (manifest main field, then
    index files). Bare specifiers are searched for in node_modules directories
    walking up from the requesting directory. Symlinks are not followed; the
    returned path is normalised but not canonicalised.
    """

    def __init__(
        self,
        cache: Optional[FileSystemCache] = None,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        main_fields: Sequence[str] = DEFAULT_MAIN_FIELDS,
        main_files: Sequence[str] = DEFAULT_MAIN_FILES,
        conditions: Sequence[str] = DEFAULT_CONDITIONS,
    ):
        self.cache = cache if cache is not None else FileSystemCache()
        self.extensions = tuple(extensions)
        self.main_fields = tuple(main_fields)
        self.main_files = tuple(main_files)
        self.conditions = tuple(conditions)

    def resolve_sync(self, from_dir: str, request: str) -> Resolved:
        """
        Resolve a request relative to a directory.

        Never raises for unresolvable requests; the reason is returned in
        Resolved.warning instead.
        """
        try:
            abs_path = self._resolve_path(from_dir, request)
            pkg_path, pkg = self._find_manifest(os.path.dirname(abs_path))
        except ResolutionError as e:
            logger.debug(f"Resolution failed: {e}")
            return Resolved(warning=str(e))
        except (ValueError, OSError) as e:
            error = ResolutionError(request, from_dir, str(e))
            logger.debug(f"Resolution failed: {error}")
            return Resolved(warning=str(error))
        logger.debug(f"Resolved '{request}' in '{from_dir}' to {abs_path}")
        return Resolved(abs_path=abs_path, pkg_path=pkg_path, pkg=pkg)

    async def resolve(self, from_dir: str, request: str) -> Resolved:
        """Resolve a request without blocking the event loop."""
        return await asyncio.to_thread(self.resolve_sync, from_dir, request)

    def _resolve_path(self, from_dir: str, request: str) -> str:
        if not request or "\0" in request:
            raise ResolutionError(request, from_dir, "invalid specifier")

        if not is_node_module(request):
            path = os.path.abspath(os.path.join(from_dir, request))
            found = None
            if not request.endswith(("/", "\\")):
                found = self._load_as_file(path)
            found = found or self._load_as_directory(path)
            if found is None:
                raise ResolutionError(request, from_dir)
            return found

        name, subpath = split_package_request(request)
        for modules_dir in self._modules_dirs(from_dir):
            package_dir = os.path.join(modules_dir, *name.split("/"))
            if not self.cache.is_dir(package_dir):
                continue
            found = self._load_from_package(package_dir, subpath, request, from_dir)
            if found is not None:
                return found
        raise ResolutionError(request, from_dir)

    def _modules_dirs(self, from_dir: str):
        current = os.path.abspath(from_dir)
        while True:
            if os.path.basename(current) != MODULES_DIR:
                yield os.path.join(current, MODULES_DIR)
            parent = os.path.dirname(current)
            if parent == current:
                return
            current = parent

    def _load_from_package(self, package_dir: str, subpath: str, request: str, from_dir: str) -> Optional[str]:
        manifest = self._read_manifest(os.path.join(package_dir, MANIFEST_NAME))
        if manifest is not None and "exports" in manifest:
            target = self._match_exports(manifest["exports"], "./" + subpath if subpath else ".")
            if target is None:
                raise ResolutionError(
                    request,
                    from_dir,
                    f"Package path ./{subpath} is not exported from package {package_dir}",
                )
            path = os.path.normpath(os.path.join(package_dir, target))
            if not self.cache.is_file(path):
                raise ResolutionError(request, from_dir, f"exported target {target} does not exist")
            return path

        if not subpath:
            return self._load_as_directory(package_dir)
        path = os.path.join(package_dir, *subpath.split("/"))
        if subpath.endswith("/"):
            return self._load_as_directory(path)
        return self._load_as_file(path) or self._load_as_directory(path)

    def _load_as_file(self, path: str) -> Optional[str]:
        if self.cache.is_file(path):
            return path
        for extension in self.extensions:
            candidate = path + extension
            if self.cache.is_file(candidate):
                return candidate
        return None

    def _load_as_directory(self, path: str) -> Optional[str]:
        if not self.cache.is_dir(path):
            return None
        manifest = self._read_manifest(os.path.join(path, MANIFEST_NAME))
        if manifest is not None:
            for field_name in self.main_fields:
                main = manifest.get(field_name)
                if not isinstance(main, str) or not main:
                    continue
                main_path = os.path.normpath(os.path.join(path, main))
                found = self._load_as_file(main_path) or self._load_index(main_path)
                if found is not None:
                    return found
        return self._load_index(path)

    def _load_index(self, path: str) -> Optional[str]:
        if not self.cache.is_dir(path):
            return None
        for main_file in self.main_files:
            found = self._load_as_file(os.path.join(path, main_file))
            if found is not None:
                return found
        return None

    def _match_exports(self, exports: Any, subpath: str) -> Optional[str]:
        """
        Find the target an "exports" field maps a subpath to.

        Args:
            exports: The raw "exports" value from the manifest.
            subpath: "." for the package root or "./sub/path".

        Returns:
            Target path relative to the package, or None if not exported.
        """
        if isinstance(exports, (str, list)) or (
            isinstance(exports, dict) and not any(key.startswith(".") for key in exports)
        ):
            exports = {".": exports}
        if not isinstance(exports, dict):
            return None

        if subpath in exports:
            return self._resolve_export_target(exports[subpath], "")

        # Longest prefix wins among single "*" patterns
        best_key = None
        best_match = ""
        for key in exports:
            if key.count("*") != 1:
                continue
            prefix, suffix = key.split("*")
            if subpath.startswith(prefix) and subpath.endswith(suffix) and len(subpath) >= len(key) - 1:
                if best_key is None or len(prefix) > len(best_key.split("*")[0]):
                    best_key = key
                    best_match = subpath[len(prefix):len(subpath) - len(suffix)]
        if best_key is None:
            return None
        return self._resolve_export_target(exports[best_key], best_match)

    def _resolve_export_target(self, target: Any, match: str) -> Optional[str]:
        if isinstance(target, str):
            if not target.startswith("./"):
                return None
            return target.replace("*", match)
        if isinstance(target, list):
            for item in target:
                found = self._resolve_export_target(item, match)
                if found is not None:
                    return found
            return None
        if isinstance(target, dict):
            for condition, value in target.items():
                if condition in self.conditions:
                    found = self._resolve_export_target(value, match)
                    if found is not None:
                        return found
        return None

    def _read_manifest(self, manifest_path: str) -> Optional[Dict[str, Any]]:
        if not self.cache.is_file(manifest_path):
            return None
        try:
            data = self.cache.read_json(manifest_path)
        except ValueError as e:
            raise ValueError(f"Invalid {MANIFEST_NAME} at {manifest_path}: {e}") from e
        return data if isinstance(data, dict) else None

    def _find_manifest(self, directory: str) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Walk up from a directory to the nearest package manifest."""
        current = directory
        while True:
            manifest_path = os.path.join(current, MANIFEST_NAME)
            manifest = self._read_manifest(manifest_path)
            if manifest is not None:
                return manifest_path, manifest
            parent = os.path.dirname(current)
            if parent == current:
                return "", None
            current = parent


def resolve_sync(from_dir: str, request: str, resolver: Optional[Resolver] = None) -> Resolved:
    """Resolve a request, blocking until done."""
    return (resolver or Resolver()).resolve_sync(from_dir, request)


async def resolve(from_dir: str, request: str, resolver: Optional[Resolver] = None) -> Resolved:
    """Resolve a request asynchronously."""
    return await (resolver or Resolver()).resolve(from_dir, request)
