"""
Repository backend that uses the GitHub contents API.
"""


import asyncio
import base64
import os
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional
from urllib.parse import quote

import aiohttp
from confuse import ConfigView
from loguru import logger

from .models import EntryType, FileContent, RepositoryEntry
from .repository_client import (
    NotFoundError,
    RepositoryClient,
    RepositoryOperationError,
    TransientError,
    VersionConflictError,
)

_ACCEPT_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}
"""
Headers that we send with every request.
"""

_ENTRY_TYPES = {"file": EntryType.FILE, "dir": EntryType.DIR}
"""
Maps GitHub content types to entry types. Everything else (symlinks,
submodules) is `EntryType.OTHER`.
"""

_MAX_LISTING_ENTRIES = 1000
"""
The contents API silently truncates folder listings at this many entries.
"""


@contextmanager
def _translate_transport_errors(path: str) -> Iterator[None]:
    """
    Context manager that converts timeouts and connection failures to
    `TransientError`s.

    Args:
        path: The path that we are operating on.

    """
    try:
        yield
    except asyncio.TimeoutError as error:
        raise TransientError(
            f"Request for '{path}' timed out.", path=path
        ) from error
    except aiohttp.ClientConnectionError as error:
        raise TransientError(
            f"Could not connect to the repository for '{path}': {error}",
            path=path,
        ) from error


async def _error_message(response: aiohttp.ClientResponse) -> str:
    """
    Extracts the most useful error message from a failed response.

    Args:
        response: The response.

    Returns:
        The message.

    """
    try:
        body = await response.json()
    except (aiohttp.ContentTypeError, ValueError):
        return str(response.reason)

    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return str(response.reason)


async def _raise_for_status(
    response: aiohttp.ClientResponse, *, path: str
) -> None:
    """
    Raises the appropriate exception if a response indicates failure.

    Args:
        response: The response to check.
        path: The path that the request was for.

    """
    status = response.status
    if status < 400:
        return

    message = await _error_message(response)
    logger.debug("Request for {} failed ({}): {}", path, status, message)
    full_message = f"'{path}': {message} (HTTP {status})"

    if status == 404:
        raise NotFoundError(full_message, path=path)
    if status in (409, 422):
        raise VersionConflictError(full_message, path=path)
    if (
        status == 429
        or status >= 500
        or (status == 403 and "rate limit" in message.lower())
    ):
        raise TransientError(full_message, path=path)
    raise RepositoryOperationError(full_message, path=path)


class GitHubRepository(RepositoryClient):
    """
    Repository backend that uses the GitHub contents API. Every write or
    delete becomes a commit on the configured branch.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        repository: str,
        branch: str = "main",
        timeout: aiohttp.ClientTimeout = aiohttp.ClientTimeout(total=30),
    ):
        """
        Args:
            session: The session to use for requests. It should have the
                API base URL and authentication headers set.
            repository: The repository to use, in "owner/name" form.
            branch: The branch to read from and commit to.
            timeout: Timeout to apply to every request.

        """
        self.__session = session
        self.__repository = repository
        self.__branch = branch
        self.__timeout = timeout

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls: RepositoryClient.ClassType, config: ConfigView
    ) -> AsyncIterator[RepositoryClient.ClassType]:
        api_base = config["api_base"].as_str()
        repository = config["repository"].as_str()
        branch = config["branch"].as_str()
        token_env_var = config["token_env_var"].as_str()
        timeout_seconds = config["timeout_seconds"].as_number()

        headers = dict(_ACCEPT_HEADERS)
        token = os.environ.get(token_env_var)
        if token:
            headers["Authorization"] = f"token {token}"
        else:
            logger.warning(
                "No token found in ${}, requests will be unauthenticated.",
                token_env_var,
            )

        logger.info("Using GitHub repository {}@{}.", repository, branch)
        async with aiohttp.ClientSession(
            base_url=api_base, headers=headers
        ) as session:
            yield cls(
                session,
                repository=repository,
                branch=branch,
                timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            )

    def __contents_url(self, path: str) -> str:
        quoted = quote(path.strip("/"))
        return f"/repos/{self.__repository}/contents/{quoted}"

    async def __get_json(self, url: str, *, path: str) -> Any:
        """
        Performs a GET request and parses the response.

        Args:
            url: The URL to get, relative to the API base.
            path: The repository path this request is for.

        Returns:
            The parsed JSON response.

        """
        with _translate_transport_errors(path):
            async with self.__session.get(
                url, params=dict(ref=self.__branch), timeout=self.__timeout
            ) as response:
                await _raise_for_status(response, path=path)
                return await response.json()

    async def __read_blob(self, sha: str, *, path: str) -> bytes:
        """
        Reads file contents through the git blob API. This is necessary for
        files over 1 MB, which the contents API does not inline.

        Args:
            sha: The blob SHA.
            path: The repository path of the file.

        Returns:
            The decoded blob contents.

        """
        logger.debug("Reading {} through the blob API.", path)
        with _translate_transport_errors(path):
            async with self.__session.get(
                f"/repos/{self.__repository}/git/blobs/{sha}",
                timeout=self.__timeout,
            ) as response:
                await _raise_for_status(response, path=path)
                blob = await response.json()

        return base64.b64decode(blob["content"])

    async def list_folder(self, path: str) -> List[RepositoryEntry]:
        logger.debug("Listing folder {}.", path)
        listing = await self.__get_json(self.__contents_url(path), path=path)
        if not isinstance(listing, list):
            raise RepositoryOperationError(
                f"'{path}' is a file, not a folder.", path=path
            )
        if len(listing) >= _MAX_LISTING_ENTRIES:
            logger.warning(
                "Listing of {} has {} entries and may be truncated.",
                path,
                len(listing),
            )

        return [
            RepositoryEntry(
                name=item["name"],
                path=item["path"],
                type=_ENTRY_TYPES.get(item["type"], EntryType.OTHER),
                size=item.get("size", 0),
                version=item["sha"],
            )
            for item in listing
        ]

    async def get_file(self, path: str) -> FileContent:
        logger.debug("Reading file {}.", path)
        item = await self.__get_json(self.__contents_url(path), path=path)
        if isinstance(item, list) or item.get("type") != "file":
            raise RepositoryOperationError(
                f"'{path}' is not a file.", path=path
            )

        if item.get("encoding") == "base64" and item.get("content"):
            content = base64.b64decode(item["content"])
        elif item.get("size", 0) > 0:
            content = await self.__read_blob(item["sha"], path=path)
        else:
            content = b""

        return FileContent(
            path=item["path"], content=content, version=item["sha"]
        )

    async def put_file(
        self,
        path: str,
        content: bytes,
        *,
        message: str,
        version: Optional[str] = None,
    ) -> str:
        body: Dict[str, str] = dict(
            message=message,
            content=base64.b64encode(content).decode("ascii"),
            branch=self.__branch,
        )
        if version is not None:
            body["sha"] = version

        logger.info("Writing {} ({} bytes).", path, len(content))
        with _translate_transport_errors(path):
            async with self.__session.put(
                self.__contents_url(path), json=body, timeout=self.__timeout
            ) as response:
                await _raise_for_status(response, path=path)
                result = await response.json()

        return result["content"]["sha"]

    async def delete_file(
        self, path: str, *, version: str, message: str
    ) -> None:
        body = dict(message=message, sha=version, branch=self.__branch)

        logger.info("Deleting {} at version {}.", path, version)
        with _translate_transport_errors(path):
            async with self.__session.delete(
                self.__contents_url(path), json=body, timeout=self.__timeout
            ) as response:
                await _raise_for_status(response, path=path)

    async def check_connection(self) -> bool:
        url = f"/repos/{self.__repository}"
        try:
            with _translate_transport_errors(url):
                async with self.__session.get(
                    url, timeout=self.__timeout
                ) as response:
                    await _raise_for_status(response, path=url)
        except RepositoryOperationError as error:
            logger.error("GitHub connection failed: {}", error)
            return False

        return True
