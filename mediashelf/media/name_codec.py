"""
Encodes media metadata into file paths, and decodes it back out again.

The path is the only place where the capture time, disambiguator, and tags
of a file are stored:

```
{images|videos}/{YYYY-MM-DD}/{stem}_{HH-MM-SS}-{disambiguator}[_{tag}...].{ext}
```

Nothing in here is escaped. Inputs that could be confused with the grammar
are refused by `encode()` rather than silently mangled. (See
`upload_namer.sanitize_stem()` for the ingestion-time fix.)
"""


import datetime
import re
from typing import Iterable, Optional, Tuple

from .models import (
    STAMP_PATTERN,
    CaptureMoment,
    DecodedName,
    MediaKind,
    distinct_tags,
    validate_tag,
)
from .partitioner import folder_for


class AmbiguousNameError(ValueError):
    """
    Raised when a name cannot be encoded without making it impossible to
    decode correctly.
    """


_EXTENSION_RE = re.compile(r"\.(?P<extension>[^/.]+)$")

_ENCODED_STEM_RE = re.compile(
    rf"(?P<stem>.+)_{STAMP_PATTERN}(?:_(?P<tags>.*))?", re.DOTALL
)
"""
Matches an encoded file name (without the extension). The stem is greedy, so
this finds the right-most time stamp token.
"""

_STEM_STAMP_RE = re.compile(rf"_{STAMP_PATTERN}(?=_|$)")
"""
Matches anything in a stem that could be mistaken for the time stamp token.
"""

_DISAMBIGUATOR_RE = re.compile(r"[A-Za-z0-9]+")
_DATE_FOLDER_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_PATH_SEPARATORS = ("/", "\\")


def split_extension(file_name: str) -> Tuple[str, str]:
    """
    Splits a file name into the stem and extension.

    Args:
        file_name: The file name.

    Returns:
        The stem, and the extension without the dot. The extension will be
        empty if there is none.

    """
    match = _EXTENSION_RE.search(file_name)
    if match is None:
        return file_name, ""
    return file_name[: match.start()], match.group("extension")


def stem_is_ambiguous(stem: str) -> bool:
    """
    Args:
        stem: A display name, without the extension.

    Returns:
        True iff the stem contains a path separator or something that looks
        like the time stamp token.

    """
    return (
        any(s in stem for s in _PATH_SEPARATORS)
        or _STEM_STAMP_RE.search(stem) is not None
    )


def encode(
    stem: str,
    extension: str,
    kind: MediaKind,
    moment: CaptureMoment,
    disambiguator: str,
    tags: Iterable[str] = (),
) -> str:
    """
    Encodes everything we know about a file into its path.

    Args:
        stem: The display name, without the extension.
        extension: The file extension, without the dot. May be empty, but
            then neither the stem nor the tags may contain a dot, since
            `decode()` would take the last dot-suffix as the extension.
        kind: The kind of media.
        moment: When the file was ingested.
        disambiguator: The random token generated at ingestion.
        tags: The tags. Duplicates are dropped.

    Raises:
        `AmbiguousNameError` if the stem or tags would confuse `decode()`, or
        `ValueError` if the stem or disambiguator are malformed.

    Returns:
        The path.

    """
    if not stem:
        raise ValueError("The display name cannot be empty.")
    if not _DISAMBIGUATOR_RE.fullmatch(disambiguator):
        raise ValueError(f"Invalid disambiguator '{disambiguator}'.")
    if stem_is_ambiguous(stem):
        raise AmbiguousNameError(
            f"Display name '{stem}' contains a path separator or a time "
            f"stamp look-alike."
        )
    if "/" in extension or "." in extension:
        raise AmbiguousNameError(f"Invalid extension '{extension}'.")

    unique_tags = distinct_tags(tags)
    for tag in unique_tags:
        try:
            validate_tag(tag)
        except ValueError as error:
            raise AmbiguousNameError(str(error)) from error

    if not extension and any("." in t for t in (stem, *unique_tags)):
        raise AmbiguousNameError(
            f"'{stem}' has no extension, so neither it nor its tags may "
            f"contain a dot."
        )

    tag_suffix = "".join(f"_{tag}" for tag in unique_tags)
    file_name = f"{stem}_{moment.time_token}-{disambiguator}{tag_suffix}"
    if extension:
        file_name = f"{file_name}.{extension}"

    return f"{folder_for(kind, moment.date)}/{file_name}"


def _parse_date_folder(folder: str) -> Optional[datetime.date]:
    if not _DATE_FOLDER_RE.fullmatch(folder):
        return None
    try:
        return datetime.date.fromisoformat(folder)
    except ValueError:
        # Right shape, but not a real date.
        return None


def decode(path: str) -> DecodedName:
    """
    Recovers everything we know about a file from its path. This never
    fails: names that are not in the encoded format just come back with no
    tags, time, or disambiguator.

    Args:
        path: The path of the file.

    Returns:
        The decoded information.

    """
    folder, _, file_name = path.strip("/").rpartition("/")
    folders = folder.split("/") if folder else []

    kind = MediaKind.from_folder(folders[0]) if folders else None
    date = _parse_date_folder(folders[1]) if len(folders) >= 2 else None

    stem, extension = split_extension(file_name)
    match = _ENCODED_STEM_RE.fullmatch(stem)
    if match is None:
        return DecodedName(
            stem=stem, extension=extension, kind=kind, date=date
        )

    tag_payload = match.group("tags") or ""
    tags = distinct_tags(t for t in tag_payload.split("_") if t)
    return DecodedName(
        stem=match.group("stem"),
        extension=extension,
        kind=kind,
        date=date,
        time_token=match.group("time"),
        disambiguator=match.group("disambiguator"),
        tags=tags,
    )
