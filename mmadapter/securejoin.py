"""Joining of untrusted paths that can never escape their root directory."""

from __future__ import annotations

import errno
import os
import stat

__all__ = ["secure_join"]

_MAX_SYMLINKS = 255


def _clean(path: str) -> str:
    """Lexically normalise a slash-separated path."""
    if not path:
        return "."
    rooted = path.startswith("/")
    parts: list[str] = []
    for component in path.split("/"):
        if component in ("", "."):
            continue
        if component == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not rooted:
                parts.append("..")
            continue
        parts.append(component)
    joined = "/".join(parts)
    if rooted:
        return "/" + joined
    return joined or "."


def _join(elements: tuple[str, ...]) -> str:
    present = [element for element in elements if element]
    return _clean("/".join(present)) if present else ""


def _is_missing(exc: OSError) -> bool:
    return isinstance(exc, (FileNotFoundError, NotADirectoryError))


def _secure_join_pair(root: str, unsafe_path: str) -> str:
    scoped = ""
    links_followed = 0
    while unsafe_path:
        if links_followed > _MAX_SYMLINKS:
            raise OSError(
                errno.ELOOP, "SecureJoin: too many levels of symbolic links", root + "/" + unsafe_path
            )
        component, _, unsafe_path = unsafe_path.partition("/")

        clean_component = _clean("/" + scoped + component)
        if clean_component == "/":
            scoped = ""
            continue
        full_path = _clean(root + clean_component)

        try:
            mode = os.lstat(full_path).st_mode
        except OSError as exc:
            if not _is_missing(exc):
                raise
            mode = None

        if mode is None or not stat.S_ISLNK(mode):
            scoped += component + "/"
            continue

        links_followed += 1
        destination = os.readlink(full_path)
        if destination.startswith("/"):
            scoped = ""
        unsafe_path = destination + "/" + unsafe_path

    return _clean(root + _clean("/" + scoped))


def secure_join(*elements: str) -> str:
    """Join path elements under the first one, resolving ``..`` and symlinks
    as if the first element were the filesystem root."""
    if len(elements) < 2:
        raise ValueError("Expected at least 2 parameters")
    root = os.fspath(elements[0])
    rest = tuple(os.fspath(element) for element in elements[1:])
    unsafe = rest[0] if len(rest) == 1 else _join(rest)
    return _secure_join_pair(root, unsafe)