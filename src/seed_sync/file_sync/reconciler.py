"""Reconciliation of stored object names against local file names."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple


class ReconciliationPolicy(str, Enum):
    """Rule set deciding which files get uploaded and which objects get deleted."""

    ALWAYS_UPLOAD = "always"
    UPDATE_ONLY = "update"
    NO_UPLOAD = "none"


@dataclass(frozen=True)
class Plan:
    """Delete and upload actions for one synchronization run."""

    to_delete: Tuple[str, ...] = ()
    to_upload: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_upload


def reconcile(
    stored_names: Iterable[str],
    local_names: Iterable[str],
    policy: ReconciliationPolicy,
) -> Plan:
    """
    Compute the plan for a run.

    Comparison is by name only. Under UPDATE_ONLY an object present both
    locally and in the store is left untouched even if its content changed.

    Args:
        stored_names: Names currently held by the object store
        local_names: Names of files in the local directory
        policy: Active reconciliation policy

    Returns:
        Plan with sorted delete and upload sequences
    """
    stored = set(stored_names)
    local = set(local_names)

    if policy is ReconciliationPolicy.ALWAYS_UPLOAD:
        # Stored copies are not removed, so GridFS ends up holding duplicates.
        return Plan(to_delete=(), to_upload=tuple(sorted(local)))

    if policy is ReconciliationPolicy.UPDATE_ONLY:
        return Plan(
            to_delete=tuple(sorted(stored - local)),
            to_upload=tuple(sorted(local - stored)),
        )

    return Plan()
