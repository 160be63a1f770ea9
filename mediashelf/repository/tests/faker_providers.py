"""
Contains custom `Faker` providers.
"""


import base64
from typing import Any, Dict, Optional

from faker import Faker
from faker.providers import BaseProvider

from mediashelf.repository.models import git_blob_sha


class GitHubProvider(BaseProvider):
    """
    Faker provider for faking GitHub contents API responses.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)

        self.__faker = Faker()

    def github_repository_name(self) -> str:
        """
        Returns:
            A fake repository name, in "owner/name" form.

        """
        return f"{self.__faker.user_name()}/{self.__faker.word()}"

    def github_file_item(
        self,
        path: Optional[str] = None,
        content: Optional[bytes] = None,
        *,
        inline: bool = True,
    ) -> Dict[str, Any]:
        """
        Creates a fake item, as returned by the contents API for a file.

        Args:
            path: The path of the file. Random by default.
            content: The file contents. Random by default.
            inline: Whether to include the contents inline. GitHub doesn't
                do this for large files.

        Returns:
            The item that it created.

        """
        if path is None:
            path = self.__faker.file_path(depth=2, absolute=False)
        if content is None:
            content = self.__faker.binary(length=64)

        item = dict(
            name=path.rsplit("/", 1)[-1],
            path=path,
            type="file",
            size=len(content),
            sha=git_blob_sha(content),
            encoding="base64" if inline else "none",
            content=base64.b64encode(content).decode("ascii")
            if inline
            else "",
        )
        return item

    def github_dir_item(self, path: Optional[str] = None) -> Dict[str, Any]:
        """
        Creates a fake item, as returned by the contents API for a folder.

        Args:
            path: The path of the folder. Random by default.

        Returns:
            The item that it created.

        """
        if path is None:
            path = self.__faker.file_path(depth=1, absolute=False)

        return dict(
            name=path.rsplit("/", 1)[-1],
            path=path,
            type="dir",
            size=0,
            sha=self.__faker.sha1(),
        )
