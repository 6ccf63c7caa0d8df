"""Exception hierarchy for notewise.

Enrichment failures are isolated where they happen:
- FeatureComputationError: one feature failed for one note (engine level)
- RecomputeAborted: a whole recompute pass failed (controller level)

Storage failures are never masked and propagate to the caller:
- StorageUnavailable: the underlying database could not be used
- NotFound: the requested note does not exist
"""


class NotewiseError(Exception):
    """Base class for all notewise errors."""


class FeatureComputationError(NotewiseError):
    """A feature's compute function raised for a single note."""

    def __init__(self, feature_id: str, note_id: str, cause: BaseException) -> None:
        self.feature_id = feature_id
        self.note_id = note_id
        self.cause = cause
        super().__init__(
            f"Feature '{feature_id}' failed for note '{note_id}': {cause}"
        )


class RecomputeAborted(NotewiseError):
    """A recompute pass could not complete; the published snapshot is kept."""


class StorageError(NotewiseError):
    """Base class for persistence failures."""


class StorageUnavailable(StorageError):
    """The persistence layer failed to read or write."""


class NotFound(StorageError):
    """A note referenced by id does not exist."""

    def __init__(self, note_id: str) -> None:
        self.note_id = note_id
        super().__init__(f"Note '{note_id}' not found")
