"""
Schemas for the API.
"""


from typing import List, Optional

from ..media.catalog import ScanResult
from ..media.models import MediaKind, MediaRecord
from ..media.tag_mutator import (
    MutationOutcome,
    MutationStage,
    TagMutationResult,
)
from ..media.uploader import UploadResult
from ..schemas import ApiModel


class DateGroup(ApiModel):
    """
    All the media captured on a particular date.

    Attributes:
        date: The date, in `YYYY-MM-DD` format.
        records: The media from that date.

    """

    date: str
    records: List[MediaRecord]


class MediaListResponse(ApiModel):
    """
    Response to a request to browse media.

    Attributes:
        kind: The kind of media.
        records: Every record that matched.
        dates: The same records, grouped by date, most recent first.
        errors: Describes any folders that could not be scanned. If this is
            not empty, the results are incomplete.

    """

    kind: MediaKind
    records: List[MediaRecord]
    dates: List[DateGroup]
    errors: List[str] = []

    @classmethod
    def from_scan(cls, result: ScanResult) -> "MediaListResponse":
        """
        Args:
            result: The (possibly filtered) scan result.

        Returns:
            The equivalent response.

        """
        by_date = result.by_date
        errors = []
        if result.error is not None:
            errors = [
                f"{folder}: {error}"
                for folder, error in result.error.failures.items()
            ]

        return cls(
            kind=result.kind,
            records=result.records,
            dates=[
                DateGroup(date=d, records=by_date[d])
                for d in result.dates_descending()
            ],
            errors=errors,
        )


class TagsResponse(ApiModel):
    """
    Attributes:
        tags: Every tag that is in use, sorted.

    """

    tags: List[str]


class TagRequest(ApiModel):
    """
    Request to add tags to some media.

    Attributes:
        paths: The paths of the files to tag.
        tags: The tags to add.

    """

    paths: List[str]
    tags: List[str]


class TagResult(ApiModel):
    """
    The result of tagging a single file.

    Attributes:
        path: The original path of the file.
        outcome: What happened.
        stage: How far it got.
        new_path: The new path of the file, if it was computed.
        tags: All the tags that the file should now have.
        error: Describes what went wrong, if anything.

    """

    path: str
    outcome: MutationOutcome
    stage: Optional[MutationStage] = None
    new_path: Optional[str] = None
    tags: List[str] = []
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: TagMutationResult) -> "TagResult":
        return cls(
            path=result.path,
            outcome=result.outcome,
            stage=result.stage,
            new_path=result.new_path,
            tags=list(result.tags),
            error=None if result.error is None else str(result.error),
        )


class TagResponse(ApiModel):
    """
    Attributes:
        results: The result for each file, in request order.

    """

    results: List[TagResult]


class UploadResponse(ApiModel):
    """
    Attributes:
        results: The result for each file, in request order.

    """

    results: List[UploadResult]


class HealthResponse(ApiModel):
    """
    Attributes:
        repository_reachable: Whether we can talk to the repository.

    """

    repository_reachable: bool
