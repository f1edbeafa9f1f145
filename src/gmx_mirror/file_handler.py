"""File handler module: encoding-aware decoding and atomic writes.

Mirror files are edited by hand in arbitrary editors, so their text goes
through charset-normalizer.  Native files and scripts are moved as raw
bytes so nothing is re-encoded on the way.
"""

import os
import shutil
import tempfile
from pathlib import Path

from charset_normalizer import from_bytes

# =============================================================================
# Reading
# =============================================================================


def decode_bytes(raw: bytes) -> tuple[str, str]:
    """Decode file content with automatic encoding detection.

    Valid UTF-8 is taken as such; anything else goes through
    charset-normalizer.  Defaults to UTF-8 for empty input or when
    detection fails.

    Args:
        raw: Bytes read from disk.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    if not raw:
        return ("", "utf-8")
    try:
        # Detection on short ASCII-ish input can pick a legacy code page.
        return (raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        return (raw.decode("utf-8", errors="replace"), "utf-8")
    encoding = result.encoding
    if encoding == "ascii":
        encoding = "utf-8"
    return (str(result), encoding)


def read_bytes(path: Path) -> bytes:
    """Return the raw content of *path*."""
    return path.read_bytes()


# =============================================================================
# Writing
# =============================================================================


def write_bytes(path: Path, data: bytes) -> int:
    """Atomically replace *path* with *data*, creating parents as needed.

    Writes to a hidden temp file in the target directory then calls
    ``os.replace()`` so readers (the IDE, the watcher) never see a
    partial file.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return len(data)


def remove_tree(path: Path) -> None:
    """Recursively delete *path*.  No-op if it does not exist."""
    if path.exists():
        shutil.rmtree(path)
