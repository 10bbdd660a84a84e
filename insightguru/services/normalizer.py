"""Turn whatever the QA endpoint returned into one canonical answer shape.

Every function here is pure and total: malformed input degrades to empty or
absent fields, it never raises.
"""

import json
from collections.abc import Mapping
from typing import Any, Literal, NamedTuple

from insightguru.models.chat import NormalizedAnswer

NO_ROWS_TEXT = "No rows returned for this question."


class RowsShape(NamedTuple):
    kind: Literal["sequence", "keyed", "invalid"]
    rows: list[Any]


def classify_rows(value: Any) -> RowsShape:
    """Resolve the rows encoding once at the ingestion boundary."""
    if isinstance(value, list):
        return RowsShape("sequence", value)
    if isinstance(value, Mapping):
        records = list(value.values())
        if all(isinstance(r, Mapping) for r in records):
            return RowsShape("keyed", records)
    return RowsShape("invalid", [])


def derive_columns(rows: list[Any], columns: Any = None) -> list[Any]:
    if isinstance(columns, list) and columns:
        return list(columns)
    if rows and isinstance(rows[0], Mapping):
        return list(rows[0].keys())
    return []


def parse_chart(value: Any) -> dict[str, Any] | None:
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = json.loads(value)
        except (ValueError, RecursionError):
            return None
    if isinstance(value, dict):
        return value
    return None


def normalize(raw: Any) -> NormalizedAnswer:
    data = raw if isinstance(raw, Mapping) else {}
    result = data.get("result")
    if not isinstance(result, Mapping):
        result = {}

    rows = classify_rows(result.get("rows")).rows
    columns = derive_columns(rows, result.get("columns"))
    chart_spec = parse_chart(data.get("chart"))

    return NormalizedAnswer(
        query=_non_empty_str(data.get("sql")) or _non_empty_str(data.get("query")),
        rows=rows,
        columns=columns,
        chart_spec=chart_spec,
        content=_content(data, rows, columns),
    )


def answer_session(raw: Any) -> tuple[str | None, str | None]:
    """Session id and name the server attached to an answer, if any."""
    data = raw if isinstance(raw, Mapping) else {}
    return _non_empty_str(data.get("session_id")), _non_empty_str(data.get("session_name"))


def _content(data: Mapping, rows: list[Any], columns: list[Any]) -> str:
    summary = data.get("summary")
    if isinstance(summary, str) and summary.strip():
        return summary.strip()
    message = _non_empty_str(data.get("message"))
    if message:
        return message
    if rows:
        return f"Returned {len(rows)} rows × {len(columns)} columns."
    return NO_ROWS_TEXT


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None
