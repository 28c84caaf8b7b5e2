"""Shared fixtures for loader tests."""

import json
import tempfile
from pathlib import Path
from typing import Dict, Union

import pytest


def write_tree(root: Path, files: Dict[str, Union[str, dict]]) -> Path:
    """
    Create files below root.

    Dict values are written as JSON, everything else as text.
    """
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, dict):
            content = json.dumps(content)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def project():
    """Temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def tree(project):
    """Write files into the temporary project directory."""
    def _write(files: Dict[str, Union[str, dict]]) -> Path:
        return write_tree(project, files)
    return _write
