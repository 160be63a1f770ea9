"""
A repository that lives entirely in memory. Useful for testing and for
trying things out without credentials for a real remote.
"""


import hashlib
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from confuse import ConfigView
from loguru import logger

from .models import EntryType, FileContent, RepositoryEntry, git_blob_sha
from .repository_client import (
    NotFoundError,
    RepositoryClient,
    VersionConflictError,
)


def _normalize(path: str) -> str:
    return path.strip("/")


class InMemoryRepository(RepositoryClient):
    """
    A repository that lives entirely in memory. Folders exist implicitly
    whenever there is at least one file below them, just like in git.
    Versions are git blob hashes, so identical content always has the same
    version.
    """

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        """
        Args:
            files: Initial contents of the repository, mapping paths to data.

        """
        self.__files = {
            _normalize(p): bytes(c) for p, c in (files or {}).items()
        }
        # Every commit message we have been given, in order.
        self.commit_log: List[str] = []

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls: RepositoryClient.ClassType, config: ConfigView
    ) -> AsyncIterator[RepositoryClient.ClassType]:
        logger.warning("Using an in-memory repository. Nothing will persist.")
        yield cls()

    @property
    def paths(self) -> List[str]:
        """
        Returns:
            The paths of every file in the repository, sorted.

        """
        return sorted(self.__files)

    async def list_folder(self, path: str) -> List[RepositoryEntry]:
        folder = _normalize(path)
        prefix = f"{folder}/" if folder else ""

        entries = []
        seen_folders = set()
        for file_path, content in sorted(self.__files.items()):
            if not file_path.startswith(prefix):
                continue

            child, _, rest = file_path[len(prefix) :].partition("/")
            if not rest:
                entries.append(
                    RepositoryEntry(
                        name=child,
                        path=file_path,
                        type=EntryType.FILE,
                        size=len(content),
                        version=git_blob_sha(content),
                    )
                )
            elif child not in seen_folders:
                seen_folders.add(child)
                entries.append(
                    RepositoryEntry(
                        name=child,
                        path=f"{prefix}{child}",
                        type=EntryType.DIR,
                        version=hashlib.sha1(
                            f"{prefix}{child}".encode("utf8")
                        ).hexdigest(),
                    )
                )

        if folder and not entries:
            raise NotFoundError(
                f"Folder '{folder}' does not exist.", path=path
            )
        return entries

    async def get_file(self, path: str) -> FileContent:
        file_path = _normalize(path)
        content = self.__files.get(file_path)
        if content is None:
            raise NotFoundError(
                f"File '{file_path}' does not exist.", path=path
            )

        return FileContent(
            path=file_path, content=content, version=git_blob_sha(content)
        )

    async def put_file(
        self,
        path: str,
        content: bytes,
        *,
        message: str,
        version: Optional[str] = None,
    ) -> str:
        file_path = _normalize(path)
        existing = self.__files.get(file_path)
        if existing is not None and version != git_blob_sha(existing):
            raise VersionConflictError(
                f"File '{file_path}' already exists at a different version.",
                path=path,
            )

        logger.debug("Writing {} bytes to {}.", len(content), file_path)
        self.__files[file_path] = bytes(content)
        self.commit_log.append(message)
        return git_blob_sha(content)

    async def delete_file(
        self, path: str, *, version: str, message: str
    ) -> None:
        file_path = _normalize(path)
        existing = self.__files.get(file_path)
        if existing is None:
            raise NotFoundError(
                f"File '{file_path}' does not exist.", path=path
            )
        if git_blob_sha(existing) != version:
            raise VersionConflictError(
                f"File '{file_path}' is not at version {version}.", path=path
            )

        logger.debug("Deleting {}.", file_path)
        del self.__files[file_path]
        self.commit_log.append(message)

    async def check_connection(self) -> bool:
        return True
