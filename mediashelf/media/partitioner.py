"""
Maps media to partition folders, and finds the partitions that exist.

Media is partitioned first by kind and then by capture date, i.e.
`images/2024-03-02`. The repository is the source of truth for which
partitions exist: we never guess dates.
"""


import asyncio
import datetime
from collections import deque
from contextlib import aclosing
from typing import AsyncIterator, Deque, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from ..repository import (
    EntryType,
    NotFoundError,
    RepositoryClient,
    RepositoryEntry,
    RepositoryOperationError,
)
from .models import MediaKind


def folder_for(kind: MediaKind, date: datetime.date) -> str:
    """
    Args:
        kind: The kind of media.
        date: The capture date.

    Returns:
        The partition folder for that kind and date.

    """
    return f"{kind.folder}/{date.isoformat()}"


class FolderListing(BaseModel):
    """
    The result of listing a single folder.

    Attributes:
        folder: The path of the folder.
        entries: The entries in the folder. Empty if listing failed.
        error: The error that occurred when listing, if any.

    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    folder: str
    entries: List[RepositoryEntry] = []
    error: Optional[RepositoryOperationError] = None


class Partitioner:
    """
    Walks the folder tree for a kind of media.
    """

    def __init__(
        self, client: RepositoryClient, *, max_concurrent_listings: int = 4
    ):
        """
        Args:
            client: The repository to walk.
            max_concurrent_listings: The maximum number of folder listings to
                have in flight at any one time.

        """
        if max_concurrent_listings < 1:
            raise ValueError("Must allow at least one listing at a time.")

        self.__client = client
        self.__max_concurrent = max_concurrent_listings

    async def walk(self, kind: MediaKind) -> AsyncIterator[FolderListing]:
        """
        Lists the root folder for a kind of media, and every folder below
        it. Folders are listed concurrently, but results are produced as they
        complete, so the order is arbitrary.

        Folders that don't exist are skipped. Folders that fail to list for
        any other reason are still produced, with the error set, and the walk
        continues with the others.

        If the consumer stops iterating early, no new listings are started,
        but ones that are already in flight are allowed to finish.

        Args:
            kind: The kind of media.

        Yields:
            The listing for each folder.

        """
        to_list: Deque[str] = deque([kind.folder])
        in_flight: Dict[asyncio.Task, str] = {}

        try:
            while to_list or in_flight:
                while to_list and len(in_flight) < self.__max_concurrent:
                    folder = to_list.popleft()
                    logger.debug("Listing partition folder {}.", folder)
                    task = asyncio.create_task(
                        self.__client.list_folder(folder),
                        name=f"list {folder}",
                    )
                    in_flight[task] = folder

                done, _ = await asyncio.wait(
                    in_flight, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    folder = in_flight.pop(task)
                    try:
                        entries = task.result()
                    except NotFoundError:
                        logger.debug("Folder {} does not exist.", folder)
                        continue
                    except RepositoryOperationError as error:
                        logger.warning("Failed to list {}: {}", folder, error)
                        yield FolderListing(folder=folder, error=error)
                        continue

                    to_list.extend(
                        e.path for e in entries if e.type == EntryType.DIR
                    )
                    yield FolderListing(folder=folder, entries=entries)

        finally:
            if in_flight:
                logger.debug(
                    "Walk abandoned, waiting for {} listings to finish.",
                    len(in_flight),
                )
                await asyncio.wait(in_flight)
            for task in in_flight:
                # Nobody will see these errors now, but they still count as
                # retrieved.
                if task.done() and not task.cancelled():
                    task.exception()

    async def partitions_to_scan(self, kind: MediaKind) -> List[str]:
        """
        Finds every folder that should be scanned for a kind of media.

        Args:
            kind: The kind of media.

        Raises:
            `RepositoryOperationError` if any folder could not be listed.

        Returns:
            The root folder, plus every folder below it, if the root exists.
            Otherwise, nothing.

        """
        folders = []
        async with aclosing(self.walk(kind)) as listings:
            async for listing in listings:
                if listing.error is not None:
                    raise listing.error
                folders.append(listing.folder)

        return folders
