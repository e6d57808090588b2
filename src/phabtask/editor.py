"""Interactive editing session on a temporary file."""

from __future__ import annotations

import os
import shlex
import subprocess  # nosec B404 - launching the user's editor
import tempfile
from pathlib import Path

from .errors import EditorError
from .logging import get_logger

DEFAULT_EDITOR = "vim"
TEMP_PREFIX = "task"


def resolve_editor(editor: str | None = None) -> list[str]:
    """Editor command: explicit value, then ``$EDITOR``, then ``vim``.

    The value is split shell-style so ``EDITOR="code --wait"`` works.
    """
    command = editor or os.environ.get("EDITOR") or DEFAULT_EDITOR
    parts = shlex.split(command)
    if not parts:
        raise EditorError(f"invalid editor command: {command!r}")
    return parts


def edit(content: str, *, editor: str | None = None, keep_file: bool = False) -> str:
    """Open ``content`` in the editor and return the text once it exits.

    The editor inherits this process's stdin/stdout/stderr and is waited on
    without a timeout. The temporary file is removed afterwards unless
    ``keep_file`` is set.
    """
    logger = get_logger()
    try:
        fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
    except OSError as exc:
        raise EditorError(f"unable to prepare temporary file: {exc}") from exc

    path = Path(name)
    try:
        cmd = [*resolve_editor(editor), str(path)]
        logger.info(f"Executing {' '.join(cmd)}", operation="edit")
        try:
            result = subprocess.run(cmd, check=False)  # nosec B603 - user-chosen editor
        except OSError as exc:
            raise EditorError(f"unable to launch {cmd[0]}: {exc}") from exc
        if result.returncode != 0:
            raise EditorError(f"{cmd[0]} exited with status {result.returncode}")
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise EditorError(f"unable to read {path}: {exc}") from exc
    finally:
        if keep_file:
            logger.warning(f"temporary file kept at {path}", path=str(path))
        else:
            path.unlink(missing_ok=True)


__all__ = ["DEFAULT_EDITOR", "TEMP_PREFIX", "edit", "resolve_editor"]
