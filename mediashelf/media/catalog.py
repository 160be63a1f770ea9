"""
Builds the browsable catalog of media by scanning the repository.

Nothing is cached: every scan lists the repository again and decodes every
file name from scratch.
"""


from contextlib import aclosing
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote

from confuse import ConfigView
from loguru import logger
from pydantic import BaseModel, ConfigDict

from ..repository import EntryType, RepositoryClient, RepositoryEntry
from .models import MediaKind, MediaRecord
from .name_codec import decode
from .partitioner import FolderListing, Partitioner


class MalformedPathError(Exception):
    """
    Raised when a file in the repository is not inside a valid
    `{kind}/{YYYY-MM-DD}/` partition.
    """

    def __init__(self, message: str, *, path: str):
        super().__init__(message)
        self.path = path


class CatalogScanError(Exception):
    """
    Raised when some of the folders for a kind of media could not be
    scanned. Collects all the individual failures.
    """

    def __init__(self, kind: MediaKind, failures: Dict[str, Exception]):
        """
        Args:
            kind: The kind of media that was being scanned.
            failures: Maps the paths of folders that failed to the
                corresponding errors.

        """
        details = "; ".join(f"{f}: {e}" for f, e in failures.items())
        super().__init__(
            f"Failed to scan {len(failures)} {kind.folder} folder(s): "
            f"{details}"
        )
        self.kind = kind
        self.failures = failures


class ScanResult(BaseModel):
    """
    The result of scanning all the media of a particular kind.

    Attributes:
        kind: The kind of media that was scanned.
        records: All the records that were found, in scan order.
        error: If some folders could not be scanned, this describes them,
            and `records` only contains what was found in the others.

    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: MediaKind
    records: List[MediaRecord] = []
    error: Optional[CatalogScanError] = None

    @property
    def by_date(self) -> Dict[str, List[MediaRecord]]:
        """
        Returns:
            The records grouped by capture date (`YYYY-MM-DD`). Within each
            date, records stay in scan order.

        """
        grouped = {}
        for record in self.records:
            grouped.setdefault(record.date_key, []).append(record)
        return grouped

    def dates_descending(self) -> List[str]:
        """
        Returns:
            Every capture date that has records, most recent first.

        """
        return sorted(self.by_date, reverse=True)

    def raise_for_error(self) -> None:
        """
        Raises:
            `CatalogScanError` if the scan was incomplete.

        """
        if self.error is not None:
            raise self.error


def filter_records(
    records: Iterable[MediaRecord],
    *,
    search: Optional[str] = None,
    tag: Optional[str] = None,
) -> List[MediaRecord]:
    """
    Filters records the way a user browses them.

    Args:
        records: The records to filter.
        search: If specified, only records whose display name or one of whose
            tags contains this (case-insensitive) are kept.
        tag: If specified, only records with exactly this tag are kept.

    Returns:
        The records that passed, in their original order.

    """
    needle = search.lower() if search else None

    def _matches(record: MediaRecord) -> bool:
        if tag is not None and tag not in record.tags:
            return False
        if needle is None:
            return True
        return needle in record.display_name.lower() or any(
            needle in t.lower() for t in record.tags
        )

    return [r for r in records if _matches(r)]


class Catalog:
    """
    Scans the repository and turns what it finds into `MediaRecord`s.
    """

    def __init__(
        self,
        client: RepositoryClient,
        *,
        browse_url_template: str,
        max_concurrent_listings: int = 4,
    ):
        """
        Args:
            client: The repository to scan.
            browse_url_template: Template for the public URL of a file.
                `{path}` will be replaced with the file's path.
            max_concurrent_listings: The maximum number of folders to list at
                once.

        """
        self.__browse_url_template = browse_url_template
        self.__partitioner = Partitioner(
            client, max_concurrent_listings=max_concurrent_listings
        )

    @classmethod
    def from_config(
        cls, client: RepositoryClient, config: ConfigView
    ) -> "Catalog":
        """
        Creates a catalog from the `catalog` configuration section.

        Args:
            client: The repository to scan.
            config: The configuration.

        Returns:
            The catalog that it created.

        """
        return cls(
            client,
            browse_url_template=config["browse_url_template"].as_str(),
            max_concurrent_listings=int(
                config["max_concurrent_listings"].as_number()
            ),
        )

    def browse_url(self, path: str) -> str:
        """
        Args:
            path: The path of a file in the repository.

        Returns:
            The canonical URL to browse or download that file.

        """
        return self.__browse_url_template.format(path=quote(path))

    def to_record(
        self, entry: RepositoryEntry, *, kind: MediaKind
    ) -> MediaRecord:
        """
        Decodes a single file entry.

        Args:
            entry: The entry for the file.
            kind: The kind of media that we expect it to be.

        Raises:
            `MalformedPathError` if the file is not in a valid partition
            for that kind.

        Returns:
            The record for the file.

        """
        decoded = decode(entry.path)
        if decoded.kind != kind or decoded.date is None:
            raise MalformedPathError(
                f"'{entry.path}' is not inside a "
                f"'{kind.folder}/YYYY-MM-DD/' partition.",
                path=entry.path,
            )

        return MediaRecord(
            display_name=decoded.display_name,
            name=entry.name,
            kind=kind,
            date=decoded.date,
            tags=list(decoded.tags),
            size=entry.size,
            url=self.browse_url(entry.path),
            path=entry.path,
        )

    def __folder_records(
        self, listing: FolderListing, *, kind: MediaKind
    ) -> List[MediaRecord]:
        return [
            self.to_record(entry, kind=kind)
            for entry in listing.entries
            if entry.type == EntryType.FILE
        ]

    async def scan(self, kind: MediaKind) -> ScanResult:
        """
        Finds all the media of a particular kind.

        A missing root folder just means there is no media yet. If any
        other folder fails, the rest are still scanned, and the failures
        are reported in the `error` field of the result.

        Args:
            kind: The kind of media to scan.

        Returns:
            The records that it found.

        """
        logger.info("Scanning {}...", kind.folder)

        records = []
        failures = {}
        async with aclosing(self.__partitioner.walk(kind)) as listings:
            async for listing in listings:
                if listing.error is not None:
                    failures[listing.folder] = listing.error
                    continue

                try:
                    records.extend(self.__folder_records(listing, kind=kind))
                except MalformedPathError as error:
                    logger.warning("Skipping {}: {}", listing.folder, error)
                    failures[listing.folder] = error

        error = CatalogScanError(kind, failures) if failures else None
        logger.info(
            "Found {} {} ({} folder(s) failed).",
            len(records),
            kind.folder,
            len(failures),
        )
        return ScanResult(kind=kind, records=records, error=error)

    async def scan_all(self) -> Dict[MediaKind, ScanResult]:
        """
        Scans every kind of media. Kinds are scanned one after the other so
        that the limit on concurrent listings holds for the scan as a whole.

        Returns:
            The result for each kind.

        """
        results = {}
        for kind in MediaKind:
            results[kind] = await self.scan(kind)
        return results

    async def all_tags(self) -> List[str]:
        """
        Finds every tag in use, on any kind of media.

        Raises:
            `CatalogScanError` if any part of the scan failed, since the
            result might otherwise be missing tags.

        Returns:
            The tags, each exactly once, sorted.

        """
        tags = set()
        for result in (await self.scan_all()).values():
            result.raise_for_error()
            for record in result.records:
                tags.update(record.tags)

        return sorted(tags)
