"""
Payment contracts.

Shapes returned to callers that are not a plain gateway field map:
- the tabular bill report returned by the bill download operation

The bill report is the one response the gateway does not wrap in XML. It is a
comma separated table where every cell is prefixed by a back-tick, followed by
a two-row summary block (header + totals).
"""

from __future__ import annotations

import re
from typing import Dict, List

from pydantic import BaseModel, Field

_LINE_BREAK = re.compile(r"\r?\n")


class BillReport(BaseModel):
    records: List[Dict[str, str]] = Field(default_factory=list)
    summary: Dict[str, str] = Field(default_factory=dict)


def _cell_value(cell: str) -> str:
    if "`" in cell:
        return cell.split("`", 1)[1].strip()
    return cell.strip()


def _rows_to_dicts(rows: List[str]) -> List[Dict[str, str]]:
    if not rows:
        return []
    titles = [title.strip().lstrip("\ufeff") for title in rows[0].split(",")]
    records: List[Dict[str, str]] = []
    for row in rows[1:]:
        cells = row.split(",")
        records.append({titles[i]: _cell_value(cell) for i, cell in enumerate(cells) if i < len(titles)})
    return records


def parse_bill(text: str) -> BillReport:
    """Parse the raw bill download body into detail records and the summary row."""
    stripped = text.strip()
    if not stripped:
        return BillReport()

    rows = _LINE_BREAK.split(stripped)
    detail_rows = rows[:-2]
    summary_rows = rows[-2:] if len(rows) >= 2 else []

    summary = _rows_to_dicts(summary_rows)
    return BillReport(
        records=_rows_to_dicts(detail_rows),
        summary=summary[0] if summary else {},
    )


__all__ = ["BillReport", "parse_bill"]
