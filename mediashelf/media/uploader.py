"""
Uploads new media to the repository.
"""


from typing import AsyncIterator, Callable, Iterable, List, Optional

from confuse import ConfigView
from loguru import logger
from pydantic import BaseModel, ConfigDict

from ..async_utils import paced
from ..repository import RepositoryClient, RepositoryOperationError
from ..schemas import ApiModel
from .models import MediaKind
from .upload_namer import name_for_upload, new_disambiguator

MAX_SIZE_BYTES = 20 * 1024 * 1024
"""
Default maximum size of a file that we will upload.
"""


class FileTooLargeError(ValueError):
    """
    Raised when a file is too large to upload.
    """


class PendingUpload(BaseModel):
    """
    A file that the user wants to upload.

    Attributes:
        display_name: The original name of the file.
        content: The file contents.
        tags: The tags to give it.
        kind: The kind of media. If not specified, it will be inferred from
            the file extension.

    """

    model_config = ConfigDict(frozen=True)

    display_name: str
    content: bytes
    tags: List[str] = []
    kind: Optional[MediaKind] = None


class UploadResult(ApiModel):
    """
    The result of uploading a single file.

    Attributes:
        display_name: The original name of the file.
        path: The path that it was stored at, if it was uploaded.
        url: The URL to browse it at, if it was uploaded.
        error: Describes why the upload failed, if it did.

    """

    display_name: str
    path: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class Uploader:
    """
    Uploads files to the repository, one at a time.
    """

    def __init__(
        self,
        client: RepositoryClient,
        *,
        browse_url: Callable[[str], str],
        inter_item_delay_seconds: float = 0.2,
        max_size_bytes: int = MAX_SIZE_BYTES,
        disambiguator_length: int = 6,
    ):
        """
        Args:
            client: The repository to upload to.
            browse_url: Function that produces the browse URL for a path.
            inter_item_delay_seconds: How long to wait between consecutive
                uploads in a batch.
            max_size_bytes: The largest file that we will upload.
            disambiguator_length: Length of the generated disambiguators.

        """
        self.__client = client
        self.__browse_url = browse_url
        self.__delay = inter_item_delay_seconds
        self.__max_size = max_size_bytes
        self.__disambiguator_length = disambiguator_length

    @classmethod
    def from_config(
        cls,
        client: RepositoryClient,
        config: ConfigView,
        *,
        browse_url: Callable[[str], str],
    ) -> "Uploader":
        """
        Creates an uploader from the `upload` configuration section.

        Args:
            client: The repository to upload to.
            config: The configuration.
            browse_url: Function that produces the browse URL for a path.

        Returns:
            The uploader that it created.

        """
        return cls(
            client,
            browse_url=browse_url,
            inter_item_delay_seconds=config[
                "inter_item_delay_seconds"
            ].as_number(),
            max_size_bytes=int(config["max_size_bytes"].as_number()),
            disambiguator_length=int(
                config["disambiguator_length"].as_number()
            ),
        )

    async def upload(self, pending: PendingUpload) -> UploadResult:
        """
        Uploads a single file.

        Args:
            pending: The file to upload.

        Raises:
            `FileTooLargeError` if the file is too large,
            `UnsupportedMediaError` if the kind can't be determined,
            `ValueError` if the name or tags are invalid, or
            `RepositoryOperationError` if the upload itself fails.

        Returns:
            The result.

        """
        if len(pending.content) > self.__max_size:
            raise FileTooLargeError(
                f"'{pending.display_name}' is {len(pending.content)} bytes, "
                f"but the limit is {self.__max_size}."
            )

        kind = pending.kind
        if kind is None:
            kind = MediaKind.from_file_name(pending.display_name)

        path = name_for_upload(
            pending.display_name,
            kind,
            pending.tags,
            disambiguator=new_disambiguator(self.__disambiguator_length),
        )
        logger.info("Uploading {} to {}.", pending.display_name, path)
        await self.__client.put_file(
            path,
            pending.content,
            message=f"upload {kind.value} to {kind.folder} folder with "
            f"date structure",
        )

        return UploadResult(
            display_name=pending.display_name,
            path=path,
            url=self.__browse_url(path),
        )

    async def upload_all(
        self, pending: Iterable[PendingUpload]
    ) -> AsyncIterator[UploadResult]:
        """
        Uploads a batch of files, sequentially, with a fixed delay between
        them. A failure does not stop the rest of the batch.

        Args:
            pending: The files to upload.

        Yields:
            The result for each file, in order.

        """
        async for item in paced(pending, delay_seconds=self.__delay):
            try:
                result = await self.upload(item)
            except (ValueError, RepositoryOperationError) as error:
                logger.warning(
                    "Failed to upload {}: {}", item.display_name, error
                )
                result = UploadResult(
                    display_name=item.display_name, error=str(error)
                )

            yield result
