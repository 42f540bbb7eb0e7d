from collections.abc import Iterable, Mapping
from datetime import date
from typing import Optional


def select_revision(
    revisions: Iterable[Mapping[str, object]], as_of: Optional[date]
) -> Optional[Mapping[str, object]]:
    """Pick the latest revision published on or before ``as_of``.

    Each revision carries an ``update_date`` (a ``date``). Ties on the update
    date are broken by ``archive_link`` so the choice is deterministic.
    """
    candidates = [
        row
        for row in revisions
        if isinstance(row.get("update_date"), date)
        and (as_of is None or row["update_date"] <= as_of)
    ]
    if not candidates:
        return None
    candidates.sort(key=lambda row: (row["update_date"], str(row.get("archive_link", ""))))
    return candidates[-1]
