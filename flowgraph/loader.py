"""Workflow file loading.

Paths containing a parent-directory segment are rejected before the file
system is touched.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import Optional, Union

from . import config
from .errors import UnsafePathError, WorkflowFileError
from .schema import Graph

logger = logging.getLogger(__name__)


def check_path(path: Union[str, PurePath]) -> None:
    """Raise UnsafePathError if path contains a '..' segment."""
    text = str(path)
    if ".." in text.replace("\\", "/").split("/"):
        raise UnsafePathError(text)


def load_graph_file(path: Union[str, PurePath], base_dir: Optional[Union[str, PurePath]] = None) -> Graph:
    """Load a workflow graph from a YAML (or .json) file.

    Args:
        path: Workflow file path
        base_dir: Directory relative paths are resolved against
            (defaults to config.WORKFLOW_DIR, then the current directory)

    Returns:
        Decoded schema Graph (not yet validated)

    Raises:
        UnsafePathError: If the path contains a parent-directory segment
        WorkflowFileError: If the file cannot be read
        SchemaDecodeError: If the contents are not a valid graph document
    """
    check_path(path)

    file_path = Path(path)
    base = base_dir if base_dir is not None else (config.WORKFLOW_DIR or None)
    if base is not None and not file_path.is_absolute():
        file_path = Path(base) / file_path

    try:
        data = file_path.read_bytes()
    except OSError as e:
        raise WorkflowFileError(f"failed to read workflow file {file_path}: {e}", e) from e

    logger.debug(f"Loaded workflow file {file_path} ({len(data)} bytes)")
    if file_path.suffix.lower() == ".json":
        return Graph.from_json(data)
    return Graph.from_yaml(data)
