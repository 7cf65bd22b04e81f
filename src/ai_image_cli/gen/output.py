from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .errors import FilesystemError

logger = logging.getLogger(__name__)

MAX_STEM_LENGTH = 200
# Stem plus suffixes and extension must stay under the 255-byte filename limit.
MAX_STEM_BYTES = 200
DEFAULT_EXTENSION = "png"
FALLBACK_STEM = "image"

_ILLEGAL_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_filename(text: str) -> str:
    """Turn free text into a filename stem safe on every common filesystem."""
    stem = _ILLEGAL_CHARS_RE.sub("", text)
    stem = _WHITESPACE_RE.sub("_", stem)
    stem = stem[:MAX_STEM_LENGTH]
    while len(stem.encode("utf-8")) > MAX_STEM_BYTES:
        stem = stem[:-1]
    return stem or FALLBACK_STEM


def _normalize_extension(extension: Optional[str]) -> str:
    ext = (extension or DEFAULT_EXTENSION).lstrip(".")
    return f".{ext}"


def build_filename(
    prompt: str,
    index: int,
    extension: str = DEFAULT_EXTENSION,
    explicit_filename: Optional[str] = None,
) -> str:
    """Base filename for the ``index``-th image of a batch, before collision checks."""
    suffix = f"_{index}" if index > 0 else ""

    if explicit_filename:
        name = Path(explicit_filename).name
        ext = Path(name).suffix
        stem = name[: -len(ext)] if ext else name
        return f"{stem}{suffix}{ext or _normalize_extension(extension)}"

    return f"{sanitize_filename(prompt)}{suffix}{_normalize_extension(extension)}"


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError as e:
        raise FilesystemError(f"Cannot check whether file exists: {e}", path=path) from e


def resolve_output_path(
    output_dir: Path,
    prompt: str,
    index: int = 0,
    extension: str = DEFAULT_EXTENSION,
    explicit_filename: Optional[str] = None,
) -> Path:
    """Return an absolute path in ``output_dir`` that does not exist yet.

    The index suffix (``_1``, ``_2``...) is applied first; if the resulting
    file is already on disk a collision counter (`` 1``, `` 2``...) is appended
    to the stem until a free name is found.
    """
    filename = build_filename(prompt, index, extension, explicit_filename)
    directory = Path(output_dir).expanduser().resolve()
    candidate = directory / filename

    stem, ext = candidate.stem, candidate.suffix
    counter = 1
    while _exists(candidate):
        candidate = directory / f"{stem} {counter}{ext}"
        counter += 1

    return candidate


def write_image(
    data: bytes,
    output_dir: Path,
    prompt: str,
    index: int = 0,
    extension: str = DEFAULT_EXTENSION,
    explicit_filename: Optional[str] = None,
) -> Path:
    """Write ``data`` to a freshly resolved path and return that path.

    The file is opened in exclusive-create mode; if another writer claims the
    resolved name first, resolution runs again and picks the next free name.
    """
    directory = Path(output_dir).expanduser()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create output directory: {e}", path=directory) from e

    while True:
        path = resolve_output_path(directory, prompt, index, extension, explicit_filename)
        try:
            with path.open("xb") as f:
                f.write(data)
        except FileExistsError:
            logger.debug("Lost race for %s, resolving again", path)
            continue
        except OSError as e:
            raise FilesystemError(f"Failed to write image: {e}", path=path) from e
        logger.debug("Wrote %d bytes to %s", len(data), path)
        return path
