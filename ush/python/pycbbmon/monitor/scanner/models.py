from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

# Naming convention of the backup software: plans created by the
# "consistency check" wizard always carry this prefix.
CONSISTENCY_PREFIX = "Consistency"


class JobKind(Enum):
    BACKUP = "Backup"
    CONSISTENCY_CHECK = "ConsistencyCheck"

    @classmethod
    def from_name(cls, name: str) -> "JobKind":
        if name.startswith(CONSISTENCY_PREFIX):
            return cls.CONSISTENCY_CHECK
        return cls.BACKUP


@dataclass(frozen=True)
class JobIdentity:
    """One plan document found on disk."""
    id: str
    name: str
    kind: JobKind
    path: Optional[str] = None    # where the plan was read from (diagnostics only)


@dataclass
class DiscoveryResult:
    """Everything the walk over ProgramData produced."""
    jobs: List[JobIdentity] = field(default_factory=list)
    history_db: Optional[str] = None
    skipped_documents: int = 0

    @property
    def backup_jobs(self) -> List[JobIdentity]:
        return [j for j in self.jobs if j.kind is JobKind.BACKUP]

    @property
    def consistency_jobs(self) -> List[JobIdentity]:
        return [j for j in self.jobs if j.kind is JobKind.CONSISTENCY_CHECK]
