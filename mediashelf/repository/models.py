"""
Data models for the remote content repository.
"""


import enum
import hashlib

from pydantic import BaseModel, ConfigDict


@enum.unique
class EntryType(enum.Enum):
    """
    The type of an entry in a folder listing.
    """

    FILE = "file"
    DIR = "dir"
    OTHER = "other"
    """
    Anything else the repository might report, such as symlinks or
    submodules. These are never treated as media.
    """


class RepositoryEntry(BaseModel):
    """
    One entry from a folder listing.

    Attributes:
        name: The name of the entry, without the folder.
        path: The full path of the entry within the repository.
        type: What kind of entry this is.
        size: The size of the entry in bytes. (Zero for folders.)
        version: Opaque token identifying the current revision of the entry.

    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    type: EntryType
    size: int = 0
    version: str


class FileContent(BaseModel):
    """
    The full contents of a file in the repository.

    Attributes:
        path: The path of the file.
        content: The raw file data.
        version: Opaque token identifying the revision that was read. This
            is what optimistic concurrency checks are performed against.

    """

    model_config = ConfigDict(frozen=True)

    path: str
    content: bytes
    version: str

    @property
    def name(self) -> str:
        """
        Returns:
            The name of the file, without the folder.

        """
        return self.path.rsplit("/", 1)[-1]


def git_blob_sha(content: bytes) -> str:
    """
    Computes the same content hash that git uses for blobs, which is also
    what the GitHub contents API reports as a file's `sha`.

    Args:
        content: The file data.

    Returns:
        The hex digest.

    """
    header = f"blob {len(content)}\0".encode("utf8")
    return hashlib.sha1(header + content).hexdigest()
