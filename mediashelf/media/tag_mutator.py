"""
Adds tags to media that is already in the repository.

Tags live in the file name, so adding a tag means renaming the file. The
repository has no rename operation, so this is done by writing a copy under
the new name and then deleting the original. The two steps are not atomic,
and each result records how far it got.
"""


import enum
from typing import AsyncIterator, Iterable, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict

from ..repository import (
    FileContent,
    NotFoundError,
    RepositoryClient,
    RepositoryOperationError,
    VersionConflictError,
)
from .catalog import MalformedPathError
from .models import CaptureMoment, DecodedName, merge_tags
from .name_codec import decode, encode
from .upload_namer import normalize_tags


@enum.unique
class MutationStage(enum.Enum):
    """
    How far a tag mutation got. Each stage implies all the previous ones.
    """

    FETCHED = "fetched"
    """
    The original file was read.
    """
    MERGED = "merged"
    """
    The new name was computed.
    """
    WRITTEN = "written"
    """
    The file exists under the new name.
    """
    OLD_DELETED = "old_deleted"
    """
    The file under the old name is gone.
    """


@enum.unique
class MutationOutcome(enum.Enum):
    """
    The overall result of a tag mutation.
    """

    APPLIED = "applied"
    """
    The file now exists only under the new name.
    """
    UNCHANGED = "unchanged"
    """
    The file already had all the tags, so nothing was done.
    """
    PARTIALLY_APPLIED = "partially_applied"
    """
    The new file was written, but the old one could not be removed. Both
    exist, and this needs manual reconciliation.
    """
    FAILED = "failed"
    """
    The file was not renamed.
    """


class TagMutationResult(BaseModel):
    """
    The result of adding tags to a single file.

    Attributes:
        path: The path of the original file.
        outcome: What happened.
        stage: The last stage that completed, or None if the file could not
            even be read.
        new_path: The path of the file with the new tags, if it was
            computed.
        tags: The full set of tags the file should have.
        error: The error that stopped the mutation, if any.

    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str
    outcome: MutationOutcome
    stage: Optional[MutationStage] = None
    new_path: Optional[str] = None
    tags: Tuple[str, ...] = ()
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        """
        Returns:
            True iff the file now has the requested tags and nothing needs to
            be cleaned up.

        """
        return self.outcome in {
            MutationOutcome.APPLIED,
            MutationOutcome.UNCHANGED,
        }


class TagMutator:
    """
    Adds tags to files in the repository, one file at a time.
    """

    def __init__(self, client: RepositoryClient):
        """
        Args:
            client: The repository to modify.

        """
        self.__client = client

    @staticmethod
    def __rename(decoded: DecodedName, tags: Iterable[str]) -> str:
        """
        Computes the new path for a file.

        Args:
            decoded: The decoded original name.
            tags: All the tags that the file should have.

        Raises:
            `ValueError` if the original time token is invalid, or the new
            name cannot be encoded.

        Returns:
            The new path.

        """
        moment = CaptureMoment.from_tokens(decoded.date, decoded.time_token)
        return encode(
            decoded.stem,
            decoded.extension,
            decoded.kind,
            moment,
            decoded.disambiguator,
            tags,
        )

    async def __write_copy(
        self, original: FileContent, new_path: str, *, message: str
    ) -> None:
        """
        Writes the contents of a file to a new path.

        Args:
            original: The file to copy.
            new_path: The path to write to.
            message: The commit message.

        Raises:
            `VersionConflictError` if something different already exists
            at `new_path`.

        """
        try:
            await self.__client.put_file(
                new_path, original.content, message=message
            )
        except VersionConflictError as error:
            # An earlier attempt may have gotten this far already.
            try:
                existing = await self.__client.get_file(new_path)
            except NotFoundError:
                # Rejected for some other reason, nothing was written.
                raise error from None
            if existing.content != original.content:
                raise
            logger.info("{} was already written, reusing it.", new_path)

    async def __mutate_one(
        self, path: str, new_tags: Tuple[str, ...]
    ) -> TagMutationResult:
        """
        Adds tags to a single file.

        Args:
            path: The file to add tags to.
            new_tags: The tags to add. Must already be validated.

        Returns:
            The result.

        """
        try:
            original = await self.__client.get_file(path)
        except RepositoryOperationError as error:
            logger.warning("Could not read {}: {}", path, error)
            return TagMutationResult(
                path=path, outcome=MutationOutcome.FAILED, error=error
            )

        try:
            decoded = _decode_for_mutation(path)
        except MalformedPathError as error:
            logger.warning("Cannot add tags to {}: {}", path, error)
            return TagMutationResult(
                path=path,
                outcome=MutationOutcome.FAILED,
                stage=MutationStage.FETCHED,
                error=error,
            )

        tags = merge_tags(decoded.tags, new_tags)
        if tags == decoded.tags:
            logger.debug("{} already has all the tags.", path)
            return TagMutationResult(
                path=path,
                outcome=MutationOutcome.UNCHANGED,
                stage=MutationStage.FETCHED,
                new_path=path,
                tags=tags,
            )

        try:
            new_path = self.__rename(decoded, tags)
        except ValueError as error:
            logger.warning("Cannot re-encode {}: {}", path, error)
            return TagMutationResult(
                path=path,
                outcome=MutationOutcome.FAILED,
                stage=MutationStage.FETCHED,
                tags=tags,
                error=MalformedPathError(str(error), path=path),
            )

        kind = decoded.kind.value
        try:
            await self.__write_copy(
                original,
                new_path,
                message=f"Add tags to {kind}: {', '.join(new_tags)}",
            )
        except RepositoryOperationError as error:
            logger.warning("Could not write {}: {}", new_path, error)
            return TagMutationResult(
                path=path,
                outcome=MutationOutcome.FAILED,
                stage=MutationStage.MERGED,
                new_path=new_path,
                tags=tags,
                error=error,
            )

        try:
            await self.__client.delete_file(
                path,
                version=original.version,
                message=f"Remove old file after adding tags: {original.name}",
            )
        except NotFoundError:
            logger.info("{} was already deleted.", path)
        except RepositoryOperationError as error:
            logger.error(
                "Both {} and {} now exist, and need to be reconciled: {}",
                path,
                new_path,
                error,
            )
            return TagMutationResult(
                path=path,
                outcome=MutationOutcome.PARTIALLY_APPLIED,
                stage=MutationStage.WRITTEN,
                new_path=new_path,
                tags=tags,
                error=error,
            )

        logger.info("Renamed {} to {}.", path, new_path)
        return TagMutationResult(
            path=path,
            outcome=MutationOutcome.APPLIED,
            stage=MutationStage.OLD_DELETED,
            new_path=new_path,
            tags=tags,
        )

    async def iter_add_tags(
        self, paths: Iterable[str], new_tags: Iterable[str]
    ) -> AsyncIterator[TagMutationResult]:
        """
        Adds tags to a batch of files, sequentially. The caller may stop
        iterating between files, and a failure on one file does not stop
        the others. Nothing is rolled back.

        Args:
            paths: The paths of the files to add tags to.
            new_tags: The tags to add.

        Raises:
            `InvalidTagError` if any of the new tags are invalid. This is
            checked before anything is modified.

        Yields:
            The result for each file, in order.

        """
        new_tags = normalize_tags(new_tags)

        for path in paths:
            yield await self.__mutate_one(path, new_tags)

    async def add_tags(
        self, paths: Iterable[str], new_tags: Iterable[str]
    ) -> List[TagMutationResult]:
        """
        Same as `iter_add_tags`, but collects all the results.

        Args:
            paths: The paths of the files to add tags to.
            new_tags: The tags to add.

        Returns:
            The result for each file, in order.

        """
        return [r async for r in self.iter_add_tags(paths, new_tags)]

    async def add_tags_to(
        self, path: str, new_tags: Iterable[str]
    ) -> TagMutationResult:
        """
        Adds tags to a single file.

        Args:
            path: The path of the file.
            new_tags: The tags to add.

        Returns:
            The result.

        """
        (result,) = await self.add_tags([path], new_tags)
        return result


def _decode_for_mutation(path: str) -> DecodedName:
    """
    Decodes a path, checking that it has everything needed to rename it.

    Args:
        path: The path.

    Raises:
        `MalformedPathError` if the path is not in a partition folder, or the
        name has no time stamp.

    Returns:
        The decoded name.

    """
    decoded = decode(path)
    if decoded.kind is None or decoded.date is None:
        raise MalformedPathError(
            f"'{path}' is not inside a partition folder.", path=path
        )
    if not decoded.is_encoded:
        raise MalformedPathError(
            f"'{path}' has no time stamp or disambiguator.", path=path
        )
    return decoded
