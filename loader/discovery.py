"""Glob matching of files under a package directory."""

import fnmatch
from pathlib import Path
from typing import Iterator, List, Union

import pathspec


DEFAULT_EXCLUDE_DIRS = {".git", ".hg", ".svn"}
MODULES_DIR = "node_modules"


def normalize_patterns(patterns: Union[str, List[str]]) -> List[str]:
    """
    Normalize manifest-style glob patterns for gitignore-style matching.

    Leading "./" is dropped, since manifests commonly write "./lib" where
    they mean "lib". Blank patterns are ignored.
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    normalized = []
    for pattern in patterns:
        pattern = pattern.strip().replace("\\", "/")
        negated = pattern.startswith("!")
        if negated:
            pattern = pattern[1:]
        while pattern.startswith("./"):
            pattern = pattern[2:]
        if not pattern:
            continue
        normalized.append("!" + pattern if negated else pattern)
    return normalized


def iter_matches(base_dir: Union[str, Path], patterns: Union[str, List[str]]) -> Iterator[Path]:
    """
    Iterate over files under base_dir matching the given glob patterns.

    Patterns use gitignore semantics, the same semantics package "files"
    lists use: a bare directory name matches everything below it and "!"
    negates an earlier match. Symlinked directories are not traversed.
    Nested node_modules directories and dot-entries (".eslintrc.js",
    ".github/") are only walked or matched when a pattern names them
    explicitly.

    Args:
        base_dir: Directory the patterns are relative to.
        patterns: One pattern or a list of patterns.

    Yields:
        Absolute paths of matching files, in sorted order.
    """
    normalized = normalize_patterns(patterns)
    if not any(not pattern.startswith("!") for pattern in normalized):
        return
    spec = pathspec.GitIgnoreSpec.from_lines(normalized)
    walk_modules = any(
        MODULES_DIR in pattern for pattern in normalized if not pattern.startswith("!")
    )
    dot_segments = [
        segment
        for pattern in normalized if not pattern.startswith("!")
        for segment in pattern.split("/") if segment.startswith(".")
    ]
    root = Path(base_dir).absolute()
    if not root.is_dir():
        return

    def _walk(current: Path) -> Iterator[Path]:
        try:
            entries = sorted(current.iterdir())
        except (PermissionError, NotADirectoryError):
            return

        for entry in entries:
            if entry.name.startswith(".") and not _names_dot_entry(entry.name, dot_segments):
                continue
            if entry.is_symlink():
                # Links to files are matched, links to directories are not followed
                if entry.is_file() and spec.match_file(_relative(entry, root)):
                    yield entry
                continue
            if entry.is_dir():
                if entry.name in DEFAULT_EXCLUDE_DIRS:
                    continue
                if entry.name == MODULES_DIR and not walk_modules:
                    continue
                yield from _walk(entry)
            elif entry.is_file():
                if spec.match_file(_relative(entry, root)):
                    yield entry

    yield from _walk(root)


def _relative(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def _names_dot_entry(name: str, dot_segments: List[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, segment) for segment in dot_segments)
