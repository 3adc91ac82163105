import json
import logging
import socket
import sys
import time
from typing import Dict, Optional

from .metadata import MetadataRegistry, build_metadata_table
from .tags import is_degenerate, sanitize_tags

logger = logging.getLogger("MetricEmitter")


def default_hostname() -> str:
    """Short, lowercase machine name (domain suffix dropped)."""
    return socket.gethostname().split(".")[0].lower()


class MetricEmitter:
    """
    Writes newline-delimited JSON records for an scollector external
    collector: metadata records ({metric, name, value}) and data points
    ({metric, timestamp, value, tags}).

    Metadata for a metric is written once per run, just before its first
    data point. Nothing but records ever goes to the stream.
    """

    def __init__(self, stream=None, hostname: Optional[str] = None,
                 registry: Optional[MetadataRegistry] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.hostname = hostname if hostname is not None else default_hostname()
        self.registry = registry or MetadataRegistry(build_metadata_table())
        self.points_written = 0
        self.write_failures = 0

    # ------------------------------------------------------------------
    # Low level
    # ------------------------------------------------------------------
    def _write_record(self, record: dict) -> bool:
        try:
            line = json.dumps(record, allow_nan=False)
        except (TypeError, ValueError) as e:
            self.write_failures += 1
            logger.error(f"Cannot serialise record for {record.get('metric')}: {e}")
            return False
        try:
            self.stream.write(line + "\n")
            self.stream.flush()
        except (OSError, ValueError) as e:
            self.write_failures += 1
            logger.error(f"Write failed for {record.get('metric')}: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def send_metadata(self, metric: str) -> None:
        for name, value in self.registry.pending(metric):
            self._write_record({"metric": metric, "name": name, "value": value})

    # ------------------------------------------------------------------
    # Data points
    # ------------------------------------------------------------------
    def build_tags(self, tags: Optional[Dict[str, str]]) -> Dict[str, str]:
        tags = dict(tags or {})
        if "host" not in tags:
            if self.hostname:
                tags["host"] = self.hostname
        elif tags["host"] == "":
            # explicit "no host dimension"
            del tags["host"]
        cleaned = sanitize_tags(tags)
        for key, value in cleaned.items():
            if is_degenerate(value):
                logger.warning(f"Tag {key}={tags[key]!r} sanitizes to {value!r}")
        return cleaned

    def data_point(self, metric: str, value, tags: Optional[Dict[str, str]] = None,
                   timestamp: Optional[int] = None) -> bool:
        self.send_metadata(metric)
        record = {
            "metric": metric,
            "timestamp": int(timestamp if timestamp is not None else time.time()),
            "value": value,
            "tags": self.build_tags(tags),
        }
        ok = self._write_record(record)
        if ok:
            self.points_written += 1
        return ok

    def flush(self) -> None:
        try:
            self.stream.flush()
        except (OSError, ValueError) as e:
            logger.error(f"Flush failed: {e}")
