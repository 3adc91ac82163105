import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import getLogger
from typing import Optional

from pycbbmon.monitor.config import CollectorConfig
from pycbbmon.monitor.database.connection import DBConnection
from pycbbmon.monitor.database.history_reader import HistoryReader
from pycbbmon.monitor.metrics.derivation import derive_file_operations, derive_job_metrics
from pycbbmon.monitor.metrics.emitter import MetricEmitter
from pycbbmon.monitor.metrics.metadata import MetadataRegistry, build_metadata_table
from pycbbmon.monitor.scanner.models import DiscoveryResult, JobIdentity
from pycbbmon.monitor.scanner.plan_scanner import discover
from pycbbmon.monitor.timeutil import utc_now

logger = getLogger("CbbCollector")


class CollectorPreconditionError(RuntimeError):
    """The pass cannot start: no plans, or no usable history database."""


@dataclass
class RunSummary:
    jobs_discovered: int = 0
    jobs_reported: int = 0
    jobs_without_history: int = 0
    jobs_failed: int = 0
    documents_skipped: int = 0
    rows_skipped: int = 0
    points_written: int = 0
    write_failures: int = 0

    @property
    def clean(self) -> bool:
        return not (self.jobs_failed or self.documents_skipped or self.rows_skipped or self.write_failures)


class CbbCollector:
    """
    One collection pass: discover plans, look up each backup plan's latest
    session, derive metrics and write them out.
    """

    def __init__(self, config: CollectorConfig, emitter: Optional[MetricEmitter] = None):
        self.config = config
        self.prefix = config.metric_prefix
        self.emitter = emitter or MetricEmitter(
            hostname=config.hostname,
            registry=MetadataRegistry(build_metadata_table(self.prefix)),
        )

    def _metric(self, suffix: str) -> str:
        return f"{self.prefix}.{suffix}"

    @staticmethod
    def check_preconditions(discovery: DiscoveryResult):
        if not discovery.jobs:
            raise CollectorPreconditionError("Did not locate any backup plans")
        if not discovery.history_db:
            raise CollectorPreconditionError("Did not locate CloudBerry database (cbbackup.db)")

    @staticmethod
    def open_history(db_path: str) -> DBConnection:
        try:
            return DBConnection(db_path)
        except (FileNotFoundError, sqlite3.Error) as e:
            raise CollectorPreconditionError(f"Cannot open CloudBerry database {db_path}: {e}") from e

    def run(self, now: Optional[datetime] = None) -> RunSummary:
        discovery = discover(self.config.program_data)
        self.check_preconditions(discovery)

        with self.open_history(discovery.history_db) as db:
            summary = self.collect(discovery, HistoryReader(db), now=now)

        logger.info(
            f"Pass complete: {summary.jobs_reported}/{summary.jobs_discovered} plans reported, "
            f"{summary.jobs_without_history} without history, {summary.jobs_failed} failed, "
            f"{summary.documents_skipped} documents and {summary.rows_skipped} rows skipped, "
            f"{summary.write_failures} write failures"
        )
        return summary

    def collect(self, discovery: DiscoveryResult, reader: HistoryReader,
                now: Optional[datetime] = None) -> RunSummary:
        now = now or utc_now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        timestamp = int(now.timestamp())
        summary = RunSummary(
            jobs_discovered=len(discovery.jobs),
            documents_skipped=discovery.skipped_documents,
        )

        self.emitter.data_point(self._metric("jobs.count"), len(discovery.jobs), timestamp=timestamp)

        for job in discovery.backup_jobs:
            try:
                reported = self.report_job(job, reader, now, timestamp)
            except sqlite3.Error as e:
                summary.jobs_failed += 1
                logger.error(f"Query failed for plan '{job.name}' ({job.id}): {e}")
                continue
            if reported:
                summary.jobs_reported += 1
            else:
                summary.jobs_without_history += 1

        self.emitter.flush()
        summary.rows_skipped = reader.rows_skipped
        summary.points_written = self.emitter.points_written
        summary.write_failures = self.emitter.write_failures
        return summary

    def report_job(self, job: JobIdentity, reader: HistoryReader, now: datetime, timestamp: int) -> bool:
        record = reader.latest_execution(job.id)
        if record is None:
            logger.info(f"No usable session history for plan '{job.name}'")
            return False

        tags = {"job": job.name}
        for suffix, value in derive_job_metrics(job, record, now).items():
            self.emitter.data_point(self._metric(f"job.{suffix}"), value, dict(tags), timestamp=timestamp)

        if self.config.file_operations:
            try:
                items = reader.item_operations(record)
            except sqlite3.Error as e:
                logger.error(f"File history query failed for plan '{job.name}': {e}")
                return True
            logger.debug(f"{job.name}: {len(items)} file operations in session {record.session_id}")
            for fname, op in derive_file_operations(items):
                self.emitter.data_point(self._metric("job.files"), op, {"job": job.name, "file": fname},
                                        timestamp=timestamp)
        return True
