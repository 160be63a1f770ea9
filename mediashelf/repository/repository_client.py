"""
Common interface for all remote content repositories.
"""


import abc
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, TypeVar

from confuse import ConfigView

from .models import FileContent, RepositoryEntry


class RepositoryOperationError(Exception):
    """
    General exception triggered when an operation on the repository fails.
    """

    def __init__(self, message: str, *, path: Optional[str] = None):
        """
        Args:
            message: Describes what went wrong.
            path: The path that the failed operation was acting on.

        """
        super().__init__(message)
        self.path = path


class NotFoundError(RepositoryOperationError):
    """
    The file or folder does not exist.
    """


class VersionConflictError(RepositoryOperationError):
    """
    Optimistic concurrency check failed: the object is not at the expected
    version, or a path that should have been free is already occupied.
    """


class TransientError(RepositoryOperationError):
    """
    The operation timed out, could not connect, or was rate-limited. The
    caller may retry it later.
    """


class RepositoryClient(abc.ABC):
    """
    Common interface for all remote content repositories. A repository is a
    tree of folders and files, where each file has an opaque version token
    that changes whenever its contents do.
    """

    ClassType = TypeVar("ClassType")

    @classmethod
    @abc.abstractmethod
    @asynccontextmanager
    async def from_config(
        cls: ClassType, config: ConfigView
    ) -> AsyncIterator[ClassType]:
        """
        Context manager that creates a new instance based on the provided
        configuration. Connections are closed on exit.

        Args:
            config: The backend-specific configuration.

        Yields:
            The new instance that it created.

        """

    @abc.abstractmethod
    async def list_folder(self, path: str) -> List[RepositoryEntry]:
        """
        Lists the immediate contents of a folder.

        Args:
            path: The path of the folder.

        Raises:
            `NotFoundError` if the folder does not exist, or
            `RepositoryOperationError` for other failures.

        Returns:
            The entries in the folder, possibly empty.

        """

    @abc.abstractmethod
    async def get_file(self, path: str) -> FileContent:
        """
        Reads a file.

        Args:
            path: The path of the file.

        Raises:
            `NotFoundError` if the file does not exist, or
            `RepositoryOperationError` for other failures.

        Returns:
            The file contents, along with the current version.

        """

    @abc.abstractmethod
    async def put_file(
        self,
        path: str,
        content: bytes,
        *,
        message: str,
        version: Optional[str] = None,
    ) -> str:
        """
        Creates a file, or overwrites an existing one.

        Args:
            path: The path of the file.
            content: The data to write.
            message: The commit message to record.
            version: The current version of the file, if we are overwriting
                it. Leave it out to create a new file.

        Raises:
            `VersionConflictError` if the path is already occupied and
            `version` is missing or stale, or `RepositoryOperationError`
            for other failures.

        Returns:
            The version of the newly-written file.

        """

    @abc.abstractmethod
    async def delete_file(
        self, path: str, *, version: str, message: str
    ) -> None:
        """
        Deletes a file, but only if it is still at the expected version.

        Args:
            path: The path of the file.
            version: The version we expect the file to be at.
            message: The commit message to record.

        Raises:
            `NotFoundError` if the file does not exist,
            `VersionConflictError` if it has changed since `version`, or
            `RepositoryOperationError` for other failures.

        """

    @abc.abstractmethod
    async def check_connection(self) -> bool:
        """
        Returns:
            True iff the repository is reachable with our credentials.

        """
