"""Version numbers for ref snapshots.

Versions are never stored. They are derived every time from the refs that
already exist: the integer after the last ``v`` in each name, maximum plus
one. Names that don't end in such an integer (``head``, ``v4-base``,
``junk``, ``nick-v99-head``) simply don't parse and are skipped, which lets
callers feed in whatever a loose search returned.
"""

from collections.abc import Iterable

from .models import Ref


def parse_version(name: str) -> int | None:
    """Return the integer following the last ``v`` in ``name``, if any."""
    _, sep, tail = name.rpartition("v")
    if not sep or not tail.isascii() or not tail.isdigit():
        return None
    return int(tail)


def next_version(refs: Iterable[Ref], scope: str = "") -> int:
    """Next snapshot version among ``refs`` whose name starts with ``scope``.

    Returns 1 when nothing in scope carries a version.
    """
    latest = 0
    for ref in refs:
        if not ref.name.startswith(scope):
            continue
        version = parse_version(ref.name)
        if version is not None and version > latest:
            latest = version
    return latest + 1
