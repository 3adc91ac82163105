from dataclasses import dataclass
from typing import Dict, List, Tuple

# Rate types and units, as understood by the Bosun metadata API
GAUGE = "gauge"

COUNT = "count"
SECONDS = "seconds"
BYTES = "bytes"

METADATA_FIELDS = ("rate", "unit", "desc")


@dataclass(frozen=True)
class MetricMetadata:
    rate: str = ""
    unit: str = ""
    desc: str = ""

    def records(self) -> List[Tuple[str, str]]:
        """(name, value) pairs for the non-empty fields, in rate/unit/desc order."""
        return [(f, getattr(self, f)) for f in METADATA_FIELDS if getattr(self, f)]


def build_metadata_table(prefix: str = "cloudberry") -> Dict[str, MetricMetadata]:
    return {
        f"{prefix}.jobs.count": MetricMetadata(
            GAUGE, COUNT, "Number of backup plans registered (backup and consistency check plans)."),
        f"{prefix}.job.status": MetricMetadata(
            GAUGE, COUNT, "The last reported status code of the last job run."),
        f"{prefix}.job.files_uploaded": MetricMetadata(
            GAUGE, COUNT, "The number of files uploaded in the last job run."),
        f"{prefix}.job.job_duration": MetricMetadata(
            GAUGE, SECONDS, "The last reported duration of the job."),
        f"{prefix}.job.time_since_last_start": MetricMetadata(
            GAUGE, SECONDS, "Time since the job last started."),
        f"{prefix}.job.size_uploaded": MetricMetadata(
            GAUGE, BYTES, "The size of the data that was uploaded as reported by the last run of the job."),
        f"{prefix}.job.size_total": MetricMetadata(
            GAUGE, BYTES, "The total size of the last backup job (i.e. not just what was uploaded)."),
        f"{prefix}.job.files": MetricMetadata(
            GAUGE, COUNT,
            "The operation taken on the file during the last job run. -1 = purged, 1 = backed up. "
            "File names are sanitised: letters, numbers, periods and hyphens are unchanged, "
            "slashes become hyphens, spaces become underscores, all other characters are stripped."),
    }


class MetadataRegistry:
    """
    Remembers which (metric, field) metadata records have gone out this run.
    """

    def __init__(self, table: Dict[str, MetricMetadata]):
        self.table = table
        self._sent = set()

    def pending(self, metric: str) -> List[Tuple[str, str]]:
        """
        Check-and-mark: returns the metadata records still owed for the
        metric and marks them as sent. A second call returns [].
        """
        meta = self.table.get(metric)
        if meta is None:
            return []
        owed = []
        for name, value in meta.records():
            key = (metric, name)
            if key in self._sent:
                continue
            self._sent.add(key)
            owed.append((name, value))
        return owed
