"""
Data models for media stored in the repository.
"""


import datetime
import enum
import re
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..schemas import ApiModel

TIME_TOKEN_FORMAT = "%H-%M-%S"
"""
Format of the time-of-day part of an encoded file name.
"""

STAMP_PATTERN = r"(?P<time>\d{2}-\d{2}-\d{2})-(?P<disambiguator>[A-Za-z0-9]+)"
"""
Pattern for the `HH-MM-SS-<disambiguator>` token that separates the display
name from the tags.
"""

_STAMP_RE = re.compile(STAMP_PATTERN)

_FORBIDDEN_TAG_CHARS_RE = re.compile(r"[\s/\\_]")
"""
Characters that may not appear in a tag.
"""


class InvalidTagError(ValueError):
    """
    Raised when a tag cannot be represented in a file name.
    """


class UnsupportedMediaError(ValueError):
    """
    Raised when a file is not a type of media that we know how to store.
    """


@enum.unique
class MediaKind(enum.Enum):
    """
    The kind of a media file.
    """

    IMAGE = "image"
    VIDEO = "video"

    @property
    def folder(self) -> str:
        """
        Returns:
            The root folder for this kind of media.

        """
        return f"{self.value}s"

    @property
    def default_extension(self) -> str:
        """
        Returns:
            The extension to use for files that don't have one.

        """
        return _DEFAULT_EXTENSIONS[self]

    @classmethod
    def from_folder(cls, folder: str) -> Optional["MediaKind"]:
        """
        Args:
            folder: The name of a partition root folder.

        Returns:
            The corresponding kind, or None if it is not a root folder.

        """
        for kind in cls:
            if kind.folder == folder:
                return kind
        return None

    @classmethod
    def from_file_name(cls, file_name: str) -> "MediaKind":
        """
        Infers the kind of a file from its extension.

        Args:
            file_name: The name of the file.

        Raises:
            `UnsupportedMediaError` if the extension is not one we accept.

        Returns:
            The kind of the file.

        """
        _, dot, extension = file_name.rpartition(".")
        extension = extension.lower()
        for kind, extensions in ACCEPTED_EXTENSIONS.items():
            if dot and extension in extensions:
                return kind

        raise UnsupportedMediaError(
            f"'{file_name}' is not a supported image or video file."
        )


_DEFAULT_EXTENSIONS = {MediaKind.IMAGE: "png", MediaKind.VIDEO: "mp4"}

ACCEPTED_EXTENSIONS = {
    MediaKind.IMAGE: frozenset({"png", "jpg", "jpeg", "gif", "webp"}),
    MediaKind.VIDEO: frozenset({"mp4", "avi", "mov", "wmv", "flv"}),
}
"""
File extensions that we accept for each kind of media.
"""


class CaptureMoment(BaseModel):
    """
    The local date and time at which a file was ingested. The date selects
    the partition folder and the time becomes part of the file name.

    Attributes:
        date: The calendar date.
        time: The wall-clock time, with one-second resolution.

    """

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    time: datetime.time

    @classmethod
    def now(cls) -> "CaptureMoment":
        """
        Returns:
            The current moment. Date and time come from the same reading
            of the clock.

        """
        return cls.from_datetime(datetime.datetime.now())

    @classmethod
    def from_datetime(cls, moment: datetime.datetime) -> "CaptureMoment":
        return cls(
            date=moment.date(), time=moment.time().replace(microsecond=0)
        )

    @classmethod
    def from_tokens(
        cls, date: datetime.date, time_token: str
    ) -> "CaptureMoment":
        """
        Reconstructs a moment from a partition date and the time token of
        an encoded file name.

        Args:
            date: The partition date.
            time_token: The time, in `HH-MM-SS` format.

        Raises:
            `ValueError` if the time token is not a valid time.

        Returns:
            The moment.

        """
        parsed = datetime.datetime.strptime(time_token, TIME_TOKEN_FORMAT)
        return cls(date=date, time=parsed.time())

    @property
    def date_folder(self) -> str:
        return self.date.isoformat()

    @property
    def time_token(self) -> str:
        return self.time.strftime(TIME_TOKEN_FORMAT)


class DecodedName(BaseModel):
    """
    Everything that can be recovered from the path of a media file.

    Attributes:
        stem: The display name, without the extension.
        extension: The file extension, without the dot. Empty if there is
            none.
        kind: The kind of media, from the partition root folder, if the
            path has one.
        date: The capture date, from the partition folder, if the path has
            one.
        time_token: The capture time in `HH-MM-SS` format, if the name is
            encoded.
        disambiguator: The random token from ingestion, if the name is
            encoded.
        tags: The tags, in order.

    """

    model_config = ConfigDict(frozen=True)

    stem: str
    extension: str = ""
    kind: Optional[MediaKind] = None
    date: Optional[datetime.date] = None
    time_token: Optional[str] = None
    disambiguator: Optional[str] = None
    tags: Tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        """
        Returns:
            The name to show to users, with the extension reattached.

        """
        if self.extension:
            return f"{self.stem}.{self.extension}"
        return self.stem

    @property
    def is_encoded(self) -> bool:
        """
        Returns:
            True iff the name carried a time and disambiguator, i.e. it can be
            re-encoded without losing anything.

        """
        return self.time_token is not None and self.disambiguator is not None


class MediaRecord(ApiModel):
    """
    User-facing view of one media file in the repository.

    Attributes:
        display_name: The name to show to users.
        name: The actual file name in the repository.
        kind: The kind of media.
        date: The capture date.
        tags: The tags on this file.
        size: The size of the file, in bytes.
        url: The canonical URL to browse or download the file.
        path: The path of the file in the repository.

    """

    display_name: str
    name: str
    kind: MediaKind
    date: datetime.date
    tags: List[str]
    size: int
    url: str
    path: str

    @property
    def date_key(self) -> str:
        """
        Returns:
            The capture date as a `YYYY-MM-DD` string. These sort correctly
            with plain string comparison.

        """
        return self.date.isoformat()


def validate_tag(tag: str) -> str:
    """
    Checks that a tag can be safely embedded in a file name.

    Args:
        tag: The tag to check.

    Raises:
        `InvalidTagError` if the tag is empty, contains whitespace,
        underscores or path separators, or could be mistaken for a time
        stamp.

    Returns:
        The same tag.

    """
    if not tag:
        raise InvalidTagError("Tags cannot be empty.")
    if _FORBIDDEN_TAG_CHARS_RE.search(tag):
        raise InvalidTagError(
            f"Tag '{tag}' contains whitespace, underscores or slashes."
        )
    if _STAMP_RE.fullmatch(tag):
        raise InvalidTagError(f"Tag '{tag}' looks like a time stamp.")
    return tag


def distinct_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """
    Removes duplicate tags, keeping the first occurrence of each.

    Args:
        tags: The tags.

    Returns:
        The unique tags, in the order they were first seen.

    """
    return tuple(dict.fromkeys(tags))


def merge_tags(
    existing: Iterable[str], new: Iterable[str]
) -> Tuple[str, ...]:
    return distinct_tags([*existing, *new])
