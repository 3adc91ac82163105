import logging
import os

from .models import DiscoveryResult
from .plan_parser import parse_plan_file

logger = logging.getLogger("PlanScanner")

PLAN_EXTENSION = ".cbb"
HISTORY_DB_NAME = "cbbackup.db"


class PlanScanner:
    """
    Walks the CloudBerry ProgramData folder.

    Two things matter: *.cbb plan documents (XML) and cbbackup.db, the
    SQLite history database. Everything else is ignored.
    """

    def __init__(self, program_data):
        self.program_data = os.path.abspath(program_data)
        logger.debug(f"INIT: PlanScanner root={self.program_data}")

    def scan(self) -> DiscoveryResult:
        result = DiscoveryResult()
        seen_ids = {}

        if not os.path.isdir(self.program_data):
            logger.error(f"ProgramData directory not found: {self.program_data}")
            return result

        for dirpath, dirnames, filenames in os.walk(self.program_data, onerror=self._walk_error):
            # Lexical order, so runs over the same tree are reproducible
            dirnames.sort()
            for filename in sorted(filenames):
                path = os.path.join(dirpath, filename)
                lowered = filename.lower()

                if lowered == HISTORY_DB_NAME:
                    if result.history_db:
                        logger.warning(f"Second history database {path} replaces {result.history_db}")
                    result.history_db = path
                    continue

                if os.path.splitext(lowered)[1] != PLAN_EXTENSION:
                    continue

                job = parse_plan_file(path)
                if job is None:
                    result.skipped_documents += 1
                    continue

                if job.id in seen_ids:
                    logger.warning(
                        f"Duplicate plan ID {job.id} in {path} (first seen in {seen_ids[job.id]})"
                    )
                seen_ids[job.id] = path

                logger.debug(f"PLAN: {job.name} ({job.kind.value}) id={job.id}")
                result.jobs.append(job)

        logger.info(
            f"Discovered {len(result.jobs)} plans "
            f"({len(result.backup_jobs)} backup, {len(result.consistency_jobs)} consistency), "
            f"history db: {result.history_db or 'not found'}"
        )
        return result

    @staticmethod
    def _walk_error(err: OSError):
        logger.error(f"Cannot list {err.filename}: {err}")


def discover(program_data) -> DiscoveryResult:
    return PlanScanner(program_data).scan()
