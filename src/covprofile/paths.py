"""Relative path computation between two filesystem paths."""

from __future__ import annotations

import os
from pathlib import Path, PurePath

StrPath = str | os.PathLike[str]


def _components(path: StrPath) -> list[str]:
    """
    Split a path into components. A leading `.` is kept as its own component
    (pathlib drops it); interior `.` and empty components are dropped.
    """
    text = os.fspath(path)
    parts = list(PurePath(text).parts)
    if text == os.curdir or text.startswith(os.curdir + os.sep):
        parts.insert(0, os.curdir)
    return parts


def path_relative_from(path: StrPath, base: StrPath) -> Path | None:
    """
    Return the path that leads from `base` to `path`, or `None` if it can't be
    determined.

    When exactly one of the two paths is absolute, an absolute `path` is
    returned unchanged and an absolute `base` gives `None`. A `..` in `base`
    after the shared prefix also gives `None`. A `..` in `path` is not checked.

    A leading `./` counts as a component only when given as a `str`. `Path`
    arguments have already dropped it.
    """
    path_abs = os.path.isabs(path)
    if path_abs != os.path.isabs(base):
        return Path(path) if path_abs else None

    ita = iter(_components(path))
    itb = iter(_components(base))
    comps: list[str] = []

    while True:
        a = next(ita, None)
        b = next(itb, None)
        if a is None and b is None:
            break
        if b is None:
            comps.append(a)  # type: ignore[arg-type]
            comps.extend(ita)
            break
        if a is None:
            comps.append(os.pardir)
            continue
        if not comps and a == b:
            continue
        if b == os.curdir:
            comps.append(a)
            continue
        if b == os.pardir:
            return None
        comps.append(os.pardir)
        comps.extend(os.pardir for _ in itb)
        comps.append(a)
        comps.extend(ita)
        break

    return Path(*comps)
