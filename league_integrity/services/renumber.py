from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.results import RenumberResult
from ..models.row import Row, parse_int

"""Renumbering engine for the hierarchy file.

Line ids in compobj.txt are positional: after every structural change the
row at index ``i`` gets id ``i + 1``. The id each row carried before the
pass becomes the key of the old -> new map consumed by the reference
rewriter.
"""

__all__ = [
    "renumber_hierarchy",
]

logger = logging.getLogger(__name__)

ID_COLUMN = "id"


def renumber_hierarchy(rows: Sequence[Row]) -> RenumberResult:
    """Assign positional ids to hierarchy rows in file order.

    Parameters
    ----------
    rows: Hierarchy rows in their current order (mutated in place: ``id`` only)

    Returns
    -------
    RenumberResult: old -> new map for every row whose previous id was a
    positive integer, plus the resulting row count

    Notes
    -----
    When two rows carried the same previous id, the later row wins the map
    entry. Running the pass twice without changes maps every id to itself.
    """
    if not rows:
        return RenumberResult(line_map={}, row_count=0)

    previous = [parse_int(row.get(ID_COLUMN)) for row in rows]
    line_map: dict[int, int] = {}
    changed = 0
    for index, row in enumerate(rows):
        new_id = index + 1
        old_id = previous[index]
        if old_id is not None and old_id > 0:
            line_map[old_id] = new_id
        new_text = str(new_id)
        if row.get(ID_COLUMN) != new_text:
            changed += 1
        row.values[ID_COLUMN] = new_text

    logger.debug("renumber rows=%d changed_ids=%d", len(rows), changed)
    return RenumberResult(line_map=line_map, row_count=len(rows), changed_ids=changed)
