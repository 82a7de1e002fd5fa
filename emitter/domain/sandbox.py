"""Filesystem sandbox utilities for safe path resolution."""

from pathlib import Path


class ForbiddenPath(Exception):
    """Raised when a requested path escapes the served directory."""


def resolve_sandbox_path(directory: str, user_path: str) -> Path:
    """Resolve ``user_path`` inside ``directory`` or raise ForbiddenPath."""
    if "\x00" in user_path:
        raise ForbiddenPath(user_path)

    relative_part = user_path.lstrip("/")
    if not relative_part or ".." in Path(relative_part).parts:
        raise ForbiddenPath(user_path)

    directory_root = Path(directory).resolve()
    target = (directory_root / relative_part).resolve()
    if directory_root not in target.parents:
        raise ForbiddenPath(user_path)
    return target
