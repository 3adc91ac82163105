import logging
import ntpath
import posixpath
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from pycbbmon.monitor.database.history_reader import ExecutionRecord, ItemOperationRecord
from pycbbmon.monitor.scanner.models import JobIdentity
from pycbbmon.monitor.timeutil import parse_cbb_time

logger = logging.getLogger("MetricDerivation")

# Result codes reported by CloudBerry in session_history.result.
# Advisory only: the raw code is what gets emitted.
JOB_STATUSES = {
    2: "running",
    6: "success",
    9: "user interrupted",
}

OPERATION_PURGE = 0
OPERATION_BACKUP = 1
HISTORY_OPERATIONS = {
    OPERATION_PURGE: "purge",
    OPERATION_BACKUP: "backup",
}

# Stored as 0 in the database, emitted as -1
PURGE_SENTINEL = -1


def status_name(code: int) -> str:
    return JOB_STATUSES.get(code, "unknown")


def operation_name(code: int) -> str:
    return HISTORY_OPERATIONS.get(code, "unknown")


def remap_operation(code: int) -> int:
    return PURGE_SENTINEL if code == OPERATION_PURGE else code


def file_name(local_path: str) -> str:
    """Last component of a Windows or POSIX path."""
    return posixpath.basename(ntpath.basename(local_path))


def derive_job_metrics(job: JobIdentity, record: ExecutionRecord, now: datetime) -> "OrderedDict[str, object]":
    """
    Values reported for one plan from its latest session, keyed by metric
    suffix. time_since_last_start is left out if the start time is unreadable.
    """
    metrics = OrderedDict()
    metrics["status"] = record.result
    metrics["files_uploaded"] = record.uploaded_count
    metrics["job_duration"] = record.duration
    try:
        started = parse_cbb_time(record.date_start_utc)
    except ValueError as e:
        logger.warning(f"{job.name}: cannot parse start time, time_since_last_start not reported ({e})")
    else:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        metrics["time_since_last_start"] = (now - started).total_seconds()
    metrics["size_uploaded"] = record.uploaded_size
    metrics["size_total"] = record.total_size
    return metrics


def derive_file_operations(items: Iterable[ItemOperationRecord]) -> List[Tuple[str, int]]:
    """(file name, operation value) for every item, in the order given."""
    return [(file_name(item.local_path), remap_operation(item.operation)) for item in items]
