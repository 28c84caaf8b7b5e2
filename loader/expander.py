"""Glob expansion of a file's dependency set."""

import asyncio
import logging
import os
from typing import List, Union

from model.file import File, ensure_dotted_relative
from .discovery import iter_matches


logger = logging.getLogger(__name__)


def expand_sync(file: File, file_dir: str, base_dir: str, patterns: Union[str, List[str]]) -> int:
    """
    Add files matching glob patterns as dependencies of a file.

    Matches are recorded relative to file_dir and never overwrite an existing
    entry. The file itself is skipped. When the file carries a package
    manifest, declared dependencies not yet covered by a known key are added
    as well. A declared name counts as covered when some existing key starts
    with it.

    Args:
        file: The file to widen.
        file_dir: Directory of the file; keys are relative to it.
        base_dir: Directory the patterns are evaluated in.
        patterns: One glob pattern or a list of them.

    Returns:
        Number of dependencies added.
    """
    added = 0
    own_path = os.path.normpath(file.abs_path)
    for match in iter_matches(base_dir, patterns):
        abs_match = os.path.normpath(str(match))
        if abs_match == own_path:
            continue
        if file.add_dependency(ensure_dotted_relative(file_dir, abs_match)):
            added += 1

    declared = (file.package or {}).get("dependencies")
    if isinstance(declared, dict):
        current = list(file.dependencies)
        for name in declared:
            if not any(key.startswith(name) for key in current):
                if file.add_dependency(name):
                    added += 1

    logger.debug(f"Expanded {file.abs_path} from {base_dir}: {added} dependencies added")
    return added


async def expand(file: File, file_dir: str, base_dir: str, patterns: Union[str, List[str]]) -> int:
    """Expand a file's dependencies without blocking the event loop."""
    return await asyncio.to_thread(expand_sync, file, file_dir, base_dir, patterns)
