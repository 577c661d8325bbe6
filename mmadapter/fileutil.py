"""Small filesystem helpers."""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

__all__ = ["remove_file_from_list", "file_exists", "clear_directory_contents"]

T = TypeVar("T")


def remove_file_from_list(filename: str, files: Sequence[T]) -> tuple[bool, list[T]]:
    """Drop the last entry named ``filename`` from ``files``.

    Entries need a ``name`` attribute. The removed slot is filled with the
    final entry, so order is not preserved. Returns whether an entry was
    found and the resulting list; the input is left untouched.
    """
    result = list(files)
    matches = [i for i, entry in enumerate(result) if entry.name == filename]
    if not matches:
        return False, result
    result[matches[-1]] = result[-1]
    result.pop()
    return True, result


def file_exists(path: str | os.PathLike[str]) -> bool:
    """Report whether ``path`` exists; errors other than absence propagate."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def _remove_all(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.unlink(path)


def clear_directory_contents(
    dir_path: str | os.PathLike[str],
    condition: Callable[[os.DirEntry[Any]], bool] | None = None,
) -> None:
    """Delete the entries of ``dir_path`` for which ``condition`` holds.

    With no condition every entry is deleted. A missing directory is fine.
    """
    try:
        with os.scandir(dir_path) as iterator:
            entries = sorted(iterator, key=lambda entry: entry.name)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise OSError(
            exc.errno, f"Error listing files to clean up in model dir {dir_path}: {exc.strerror}"
        ) from exc

    for entry in entries:
        if condition is not None and not condition(entry):
            continue
        path = os.path.join(dir_path, entry.name)
        try:
            _remove_all(path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            raise OSError(
                exc.errno,
                f"Error removing preexisting entry from model store dir: {path}: {exc.strerror}",
            ) from exc