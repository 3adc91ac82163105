import logging
import sqlite3
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from pycbbmon.monitor.timeutil import format_cbb_time, parse_cbb_time
from .connection import DBConnection

logger = logging.getLogger("HistoryReader")


@dataclass(frozen=True)
class ExecutionRecord:
    """One row of session_history: a single run of a plan."""
    session_id: int
    plan_id: str
    date_start_utc: str
    duration: int
    result: int
    uploaded_count: int
    uploaded_size: float
    scanned_count: int
    scanned_size: float
    total_count: int
    total_size: float
    purged_count: int
    failed_count: int


@dataclass(frozen=True)
class ItemOperationRecord:
    """One row of history: a file backed up or purged during a session."""
    plan_id: str
    session_id: Optional[int]
    operation: int
    local_path: str
    size: float
    date_finished_utc: str


# field name -> (column, converter)
EXECUTION_COLUMNS = {
    "session_id": ("id", int),
    "plan_id": ("plan_id", str),
    "date_start_utc": ("date_start_utc", str),
    "duration": ("duration", int),
    "result": ("result", int),
    "uploaded_count": ("uploaded_count", int),
    "uploaded_size": ("uploaded_size", float),
    "scanned_count": ("scanned_count", int),
    "scanned_size": ("scanned_size", float),
    "total_count": ("total_count", int),
    "total_size": ("total_size", float),
    "purged_count": ("purged_count", int),
    "failed_count": ("failed_count", int),
}

ITEM_COLUMNS = {
    "plan_id": ("plan_id", str),
    "operation": ("operation", int),
    "local_path": ("local_path", str),
    "size": ("size", float),
    "date_finished_utc": ("date_finished_utc", str),
}


def _convert(value, converter):
    if value is None:
        raise ValueError("NULL value")
    if converter is str:
        return str(value)
    if converter is int and isinstance(value, str):
        # int("12.0") fails, int(float("12.0")) does not
        return int(float(value))
    return converter(value)


def row_to_record(row: sqlite3.Row, mapping: dict, record_cls, **extra):
    """Hand-written row → dataclass conversion using a column mapping table."""
    values = {}
    for field_name, (column, converter) in mapping.items():
        try:
            values[field_name] = _convert(row[column], converter)
        except (TypeError, ValueError) as e:
            raise ValueError(f"column '{column}': {e}") from e
    values.update(extra)
    return record_cls(**values)


def _select_list(mapping: dict) -> str:
    return ", ".join(column for column, _ in mapping.values())


class HistoryReader:
    """
    Read-only queries against cbbackup.db.

    Plan IDs come from documents on disk; they are always bound as query
    parameters and never formatted into SQL.
    """

    LATEST_SESSION_SQL = (
        f"SELECT {_select_list(EXECUTION_COLUMNS)} FROM session_history "
        "WHERE plan_id = ? ORDER BY date_start_utc DESC LIMIT 1"
    )
    ITEMS_BY_SESSION_SQL = (
        f"SELECT {_select_list(ITEM_COLUMNS)}, session_id FROM history "
        "WHERE plan_id = ? AND session_id = ? ORDER BY date_finished_utc ASC"
    )
    ITEMS_BY_WINDOW_SQL = (
        f"SELECT {_select_list(ITEM_COLUMNS)} FROM history "
        "WHERE plan_id = ? AND date_finished_utc BETWEEN ? AND ? ORDER BY date_finished_utc ASC"
    )

    def __init__(self, db: DBConnection):
        self.db = db
        self.rows_skipped = 0
        self._history_has_session = None

    def latest_execution(self, plan_id: str) -> Optional[ExecutionRecord]:
        """Most recent session_history row for the plan, or None."""
        row = self.db.fetch_one(self.LATEST_SESSION_SQL, (plan_id,))
        if row is None:
            logger.debug(f"No session history for plan {plan_id}")
            return None
        try:
            return row_to_record(row, EXECUTION_COLUMNS, ExecutionRecord)
        except ValueError as e:
            self.rows_skipped += 1
            logger.error(f"Skipping malformed session_history row for plan {plan_id}: {e}")
            return None

    def history_has_session_id(self) -> bool:
        if self._history_has_session is None:
            self._history_has_session = "session_id" in self.db.table_columns("history")
            if not self._history_has_session:
                logger.info("history table has no session_id column, correlating by time window")
        return self._history_has_session

    def item_operations(self, record: ExecutionRecord) -> List[ItemOperationRecord]:
        """File operations performed during the given session, oldest first."""
        if self.history_has_session_id():
            rows = self.db.fetch_all(self.ITEMS_BY_SESSION_SQL, (record.plan_id, record.session_id))
        else:
            try:
                started = parse_cbb_time(record.date_start_utc)
            except ValueError as e:
                logger.error(f"Cannot window item history for plan {record.plan_id}: {e}")
                return []
            finished = started + timedelta(seconds=record.duration)
            rows = self.db.fetch_all(
                self.ITEMS_BY_WINDOW_SQL,
                (record.plan_id, format_cbb_time(started), format_cbb_time(finished)),
            )

        items = []
        for row in rows:
            session_id = row["session_id"] if "session_id" in row.keys() else None
            try:
                items.append(row_to_record(row, ITEM_COLUMNS, ItemOperationRecord, session_id=session_id))
            except ValueError as e:
                self.rows_skipped += 1
                logger.error(f"Skipping malformed history row for plan {record.plan_id}: {e}")
        return items
