"""
File Helpers

Writes files all-or-nothing: data goes to a temporary file in the target
directory and is then renamed over the destination, so readers only ever see
the previous or the new content.
"""

import os
import tempfile
from pathlib import Path


def atomic_write(path, data):
    """
    Atomically replace ``path`` with ``data``.

    Args:
        path (str | Path): Destination file. Parent directories are created.
        data (str | bytes): Content to write. Text is encoded as UTF-8.

    Raises:
        OSError: If the directory cannot be created or the file cannot be written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(data, str):
        data = data.encode("utf-8")

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(data)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        # os.replace never ran, the destination is untouched
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
