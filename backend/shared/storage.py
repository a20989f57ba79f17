"""Small-file JSON persistence for local state snapshots.

Documents are written atomically via temp-file-then-rename so a crash or a
concurrent reader never sees a truncated file. Files are written with
owner-only permissions (0o600); the parent directory is created lazily.
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

# Owner-only file permissions for snapshot files.
_STATE_FILE_MODE = 0o600


class StateFileError(OSError):
    """A state file exists but could not be read or decoded."""


def read_json_document(path: Path) -> Any | None:
    """Read and decode a JSON document.

    Returns None when the file does not exist. Raises StateFileError when
    the file exists but cannot be read or is not valid JSON.
    """
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        msg = f"Failed to read {path}"
        raise StateFileError(msg) from exc


def write_json_document(path: Path, data: Any) -> None:
    """Atomically write ``data`` as indented JSON to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2).encode("utf-8")

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.stem}_", suffix=".tmp")
    fd_owned = True
    try:
        with os.fdopen(fd, "wb") as f:
            fd_owned = False  # os.fdopen took ownership; it will close fd
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, _STATE_FILE_MODE)  # noqa: PTH101
        Path(tmp_path).replace(path)
    except BaseException:
        if fd_owned:
            with contextlib.suppress(OSError):
                os.close(fd)
        with contextlib.suppress(OSError):
            Path(tmp_path).unlink()
        raise
    logger.debug("wrote state file", path=str(path), size=len(content))
