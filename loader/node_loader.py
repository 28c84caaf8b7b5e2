"""Loads a single module: resolve, read, extract and expand its dependencies."""

import asyncio
import logging
import os
import stat
from typing import List, Optional, Tuple, Union

from model.file import (
    File,
    LoadOptions,
    LoadWarning,
    ensure_dotted_relative,
    extra_globs,
    is_node_module,
    node_module_globs,
)
from .errors import ParseError
from .expander import expand, expand_sync
from .parser import gather_dependencies
from .resolver import Resolved, Resolver


logger = logging.getLogger(__name__)

JS_EXTENSIONS = (".js", ".mjs", ".cjs")
MODULE_EXTENSIONS = (".mjs",)
JSON_EXTENSIONS = (".json",)

# (base directory, patterns, marks context expanded)
ExpansionStep = Tuple[str, List[str], bool]


def classify(abs_path: str, options: LoadOptions) -> str:
    """
    Classify a file as "js", "json" or "opaque".

    Entry files are always treated as JavaScript so extensionless
    executables still have their dependencies extracted.
    """
    lowered = abs_path.lower()
    if options.is_entry or lowered.endswith(JS_EXTENSIONS):
        return "js"
    if lowered.endswith(JSON_EXTENSIONS):
        return "json"
    return "opaque"


def read_text(abs_path: str) -> str:
    with open(abs_path, "r", encoding="utf-8", errors="replace") as handle:
        return handle.read()


def extract(file: File, kind: str) -> Optional[LoadWarning]:
    """Merge statically found dependencies into the file."""
    if kind != "js" or file.contents is None:
        return None
    try:
        result = gather_dependencies(file.contents, file.abs_path.lower().endswith(MODULE_EXTENSIONS))
    except ParseError as e:
        error = e.with_path(file.abs_path)
        logger.debug(f"Parse failed for {file.abs_path}: {error}")
        return LoadWarning(f'Error parsing file: "{error.path}"\n{error}')
    for specifier, hint in result.dependencies.items():
        file.add_dependency(specifier, hint)
    file.variable_imports = result.variable
    return None


def attach_package(file: File, request: str, resolved: Resolved) -> bool:
    """
    Attach the enclosing package when a bare request lands in one.

    The manifest itself is recorded as a dependency so edits to it are
    tracked.

    Returns:
        True if a package was attached.
    """
    if not (is_node_module(request) and resolved.pkg is not None and resolved.pkg_path):
        return False
    file.attach_package(resolved.pkg, os.path.dirname(resolved.pkg_path))
    file.add_dependency(ensure_dotted_relative(os.path.dirname(file.abs_path), resolved.pkg_path))
    return True


def plan_expansion(file: File, options: LoadOptions) -> List[ExpansionStep]:
    """
    Decide which glob expansions a loaded file needs.

    A file with an attached package expands from the package root. Module
    globs and asset globs share one pass since they are rooted at the same
    directory. Otherwise an inherited context is expanded once when variable
    imports were found.
    """
    expand_variable = options.expand == "variable" and file.variable_imports
    expand_all = options.expand == "all"

    if file.module_root is not None:
        patterns: List[str] = []
        marks = False
        if expand_variable or expand_all:
            patterns.extend(node_module_globs(file.package))
            marks = True
        patterns.extend(extra_globs(file.package))
        if not patterns:
            return []
        return [(file.module_root, patterns, marks)]

    context = options.context
    if expand_variable and context is not None and context.module_root and not context.expanded:
        return [(context.module_root, node_module_globs({"files": context.globs}), True)]
    return []


def record_stat(file: File, link_stat: os.stat_result, real_path: Optional[str] = None,
                real_stat: Optional[os.stat_result] = None) -> None:
    """Record sizes, and the link target when the file is a symlink."""
    file.size = link_stat.st_size
    if real_path is not None and real_stat is not None:
        file.real_path = real_path
        file.real_size = real_stat.st_size


def load_sync(
    working_directory: str,
    request: str,
    options: Optional[LoadOptions] = None,
    resolver: Optional[Resolver] = None,
) -> Union[File, LoadWarning]:
    """
    Load a module and describe what it depends on, blocking until done.

    Args:
        working_directory: Directory the request is resolved from.
        request: Module specifier, relative path or package name.
        options: Load options; defaults to LoadOptions().
        resolver: Resolver to use; share one to share its filesystem cache.

    Returns:
        The loaded File, or a LoadWarning when the request cannot be resolved
        or the file cannot be parsed.

    Raises:
        OSError: If reading or stat-ing the resolved file fails.
    """
    options = options or LoadOptions()
    resolver = resolver or Resolver()

    resolved = resolver.resolve_sync(working_directory, request)
    if not resolved.ok:
        return LoadWarning(resolved.warning)

    file = File(resolved.abs_path)
    kind = classify(file.abs_path, options)
    if kind != "opaque":
        file.contents = read_text(file.abs_path)

    failure = extract(file, kind)
    if failure is not None:
        return failure

    attach_package(file, request, resolved)

    file_dir = os.path.dirname(file.abs_path)
    for base_dir, patterns, marks in plan_expansion(file, options):
        expand_sync(file, file_dir, base_dir, patterns)
        if marks:
            file.mark_context_expanded()

    if not options.load_content:
        file.contents = None

    link_stat = os.lstat(file.abs_path)
    if stat.S_ISLNK(link_stat.st_mode):
        record_stat(file, link_stat, os.path.realpath(file.abs_path), os.stat(file.abs_path))
    else:
        record_stat(file, link_stat)
    logger.debug(f"Loaded {file!r}")
    return file


async def load(
    working_directory: str,
    request: str,
    options: Optional[LoadOptions] = None,
    resolver: Optional[Resolver] = None,
) -> Union[File, LoadWarning]:
    """
    Load a module without blocking the event loop.

    Same stages and results as load_sync. Stages run one after another;
    filesystem work runs in worker threads.
    """
    options = options or LoadOptions()
    resolver = resolver or Resolver()

    resolved = await resolver.resolve(working_directory, request)
    if not resolved.ok:
        return LoadWarning(resolved.warning)

    file = File(resolved.abs_path)
    kind = classify(file.abs_path, options)
    if kind != "opaque":
        file.contents = await asyncio.to_thread(read_text, file.abs_path)

    failure = extract(file, kind)
    if failure is not None:
        return failure

    attach_package(file, request, resolved)

    file_dir = os.path.dirname(file.abs_path)
    for base_dir, patterns, marks in plan_expansion(file, options):
        await expand(file, file_dir, base_dir, patterns)
        if marks:
            file.mark_context_expanded()

    if not options.load_content:
        file.contents = None

    link_stat = await asyncio.to_thread(os.lstat, file.abs_path)
    if stat.S_ISLNK(link_stat.st_mode):
        real_path, real_stat = await asyncio.gather(
            asyncio.to_thread(os.path.realpath, file.abs_path),
            asyncio.to_thread(os.stat, file.abs_path),
        )
        record_stat(file, link_stat, real_path, real_stat)
    else:
        record_stat(file, link_stat)
    logger.debug(f"Loaded {file!r}")
    return file
