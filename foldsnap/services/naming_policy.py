"""Folder name sanitization and sibling-unique renaming."""

import re

from ..exceptions import EmptyNameError
from ..models.folder import FOLDER_NAME_MAX_LENGTH, ROOT_FOLDER_ID
from ..repositories.folder_store import FolderStore

# C0 controls, DEL and C1 controls.
_CONTROL_CHARS = re.compile("[\u0000-\u001f\u007f-\u009f]")

# Spreadsheet formula triggers, together with any whitespace around them.
_LEADING_FORMULA = re.compile(r"^[\s=+@|]+")


def sanitize_name(raw: str) -> str:
    """Turn user input into a storable folder name.

    Strips control characters, leading ``= + @ |`` (formula injection on
    export), surrounding whitespace, and truncates to 200 code points.
    Applying it twice gives the same result as applying it once.

    Raises:
        EmptyNameError: nothing is left after sanitization.
    """
    name = _CONTROL_CHARS.sub("", raw)
    name = _LEADING_FORMULA.sub("", name).strip()
    name = name[:FOLDER_NAME_MAX_LENGTH].rstrip()

    if not name:
        raise EmptyNameError()
    return name


class NamingPolicy:
    """Resolves sibling name collisions with ``name (N)`` suffixes."""

    def __init__(self, store: FolderStore):
        self.store = store

    def sanitize(self, raw: str) -> str:
        return sanitize_name(raw)

    def ensure_unique(
        self, name: str, parent_id: int = ROOT_FOLDER_ID, exclude_id: int = 0
    ) -> str:
        """Return *name*, or ``name (N+1)`` if a sibling already uses it.

        N is the highest existing ``name (N)`` suffix under the same parent,
        or 1 when there is none, so "Photos" next to "Photos" and
        "Photos (3)" becomes "Photos (4)". A numbered sibling alone does not
        force a rename. All comparisons ignore case.
        """
        matches = self.store.sibling_name_matches(name, parent_id, exclude_id)
        if not matches:
            return name

        lowered = name.lower()
        if not any(match.lower() == lowered for match in matches):
            return name

        suffix = re.compile(r"^" + re.escape(name) + r" \((\d+)\)$", re.IGNORECASE)
        max_suffix = 1
        for match in matches:
            m = suffix.match(match)
            if m:
                max_suffix = max(max_suffix, int(m.group(1)))

        return f"{name} ({max_suffix + 1})"
