"""
Atomic file writes for cache files, history and exported reports.

Content is staged in a hidden sibling file, flushed to disk, then moved over
the target. Readers see either the previous document or the new one.
"""

import json
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Iterator, Union

import structlog

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


@contextmanager
def _staged_file(target: Path, encoding: str) -> Iterator[IO[str]]:
    """Yield a writable sibling of ``target``; on clean exit it replaces ``target``."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, staged_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    staged = Path(staged_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        _move_into_place(staged, target)
    except BaseException:
        staged.unlink(missing_ok=True)
        raise


def _move_into_place(staged: Path, target: Path) -> None:
    try:
        os.replace(staged, target)
    except OSError as e:
        logger.warning("Rename failed, moving staged file instead", target=str(target), error=str(e))
        try:
            shutil.move(str(staged), str(target))
        except (OSError, shutil.Error) as move_error:
            raise OSError(f"Failed to write {target}: {move_error}") from move_error


def atomic_write_text(target_path: PathLike, content: str, encoding: str = "utf-8") -> None:
    """
    Replace ``target_path`` with ``content`` in one step.

    Missing parent directories are created.

    Raises:
        OSError: If the staged file cannot be written or moved into place
    """
    target = Path(target_path)
    with _staged_file(target, encoding) as handle:
        handle.write(content)
    logger.debug("File written", target=str(target), chars=len(content))


def atomic_write_json(target_path: PathLike, data: Any) -> None:
    """
    Serialize ``data`` as indented UTF-8 JSON and write it atomically.

    Raises:
        ValueError: If ``data`` is not JSON serializable (nothing is written)
        OSError: If writing fails
    """
    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.error("Refusing to write unserializable JSON", target=str(target_path), error=str(e))
        raise ValueError(f"Cannot serialize data to JSON: {e}") from e
    atomic_write_text(target_path, payload)
