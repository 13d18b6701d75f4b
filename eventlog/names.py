from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List

from eventlog.cells import cell_text, is_numeric_cell
from eventlog.layout import DEFAULT_LAYOUT, WorkbookLayout
from eventlog.workbook import SheetGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NameIndex:
    """Display names in first-seen order and the frequency codes that belong to each."""

    names: List[str] = field(default_factory=list)
    frequencies: Dict[str, FrozenSet[float]] = field(default_factory=dict)

    def codes_for(self, name: str) -> FrozenSet[float]:
        return self.frequencies.get(name, frozenset())

    def __contains__(self, name: object) -> bool:
        return name in self.frequencies


def resolve_names(lookup_sheet: SheetGrid, layout: WorkbookLayout = DEFAULT_LAYOUT) -> NameIndex:
    names = lookup_sheet.column(layout.lookup_name_column, layout.lookup_start_row)
    codes = lookup_sheet.column(layout.lookup_frequency_column, layout.lookup_start_row)

    collected: Dict[str, set] = {}
    for row in names.index:
        name = cell_text(names.at[row])
        code = codes.at[row]
        if name is None or not is_numeric_cell(code):
            continue
        collected.setdefault(name, set()).add(float(code))

    index = NameIndex(
        names=list(collected),
        frequencies={name: frozenset(found) for name, found in collected.items()},
    )
    logger.debug("Resolved %d name(s) from lookup sheet %r", len(index.names), lookup_sheet.name)
    return index
