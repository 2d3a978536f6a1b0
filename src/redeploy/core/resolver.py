"""Map changed file paths to the deployable unit they belong to."""

from __future__ import annotations

import re
from typing import Optional

from redeploy.core.config import DEFAULT_MARKER

_SEPARATORS = re.compile(r"[\\/]")


def resolve_unit(path: Optional[str], marker: str = DEFAULT_MARKER) -> str:
    """
    Return the unit name for a changed path.

    The unit is the path segment right after the first ``marker`` segment,
    so ``/app/actions/foo/index.js`` resolves to ``foo``. Returns ``""``
    when the path is empty, has no marker, or ends at the marker. An empty
    segment after the marker (``actions//foo.js``) also yields ``""``.
    """
    if not path:
        return ""
    segments = _SEPARATORS.split(str(path))
    try:
        index = segments.index(marker)
    except ValueError:
        return ""
    if index + 1 >= len(segments):
        return ""
    return segments[index + 1]
