"""
Chooses the names for newly-uploaded media.
"""


import re
import secrets
import string
from typing import Iterable, Optional, Tuple

from loguru import logger

from .models import CaptureMoment, MediaKind, distinct_tags, validate_tag
from .name_codec import encode, split_extension

DISAMBIGUATOR_ALPHABET = string.digits + string.ascii_lowercase
"""
Characters that can appear in a generated disambiguator.
"""

MIN_DISAMBIGUATOR_LENGTH = 6
"""
Shortest disambiguator we will generate. Two uploads with the same name in
the same second collide with probability 36^-6 at this length.
"""

_SEPARATOR_RE = re.compile(r"[/\\]")
_LOOKALIKE_RE = re.compile(r"_(?=\d{2}-\d{2}-\d{2}-[A-Za-z0-9]+(?:_|$))")
"""
Matches the underscore that introduces a time stamp look-alike in a stem.
"""


def new_disambiguator(length: int = MIN_DISAMBIGUATOR_LENGTH) -> str:
    """
    Generates a random disambiguator.

    Args:
        length: The number of characters to generate.

    Raises:
        `ValueError` if the length is too short to make collisions unlikely.

    Returns:
        The disambiguator.

    """
    if length < MIN_DISAMBIGUATOR_LENGTH:
        raise ValueError(
            f"Disambiguators must be at least {MIN_DISAMBIGUATOR_LENGTH} "
            f"characters, not {length}."
        )
    return "".join(
        secrets.choice(DISAMBIGUATOR_ALPHABET) for _ in range(length)
    )


def sanitize_stem(stem: str) -> str:
    """
    Modifies a display name so that it can be encoded unambiguously.

    Args:
        stem: The display name, without the extension.

    Returns:
        The same name, with path separators, and the underscore before
        anything that looks like a time stamp, replaced by dashes.

    """
    sanitized = _SEPARATOR_RE.sub("-", stem)
    sanitized = _LOOKALIKE_RE.sub("-", sanitized)
    if sanitized != stem:
        logger.info(
            "Renamed '{}' to '{}' so it can be encoded.", stem, sanitized
        )
    return sanitized


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """
    Cleans up tags provided by a user.

    Args:
        tags: The raw tags.

    Raises:
        `InvalidTagError` if any tag is invalid after cleaning.

    Returns:
        The tags, stripped of surrounding whitespace, with empty tags and
        duplicates removed.

    """
    stripped = (t.strip() for t in tags)
    return tuple(
        validate_tag(t) for t in distinct_tags(t for t in stripped if t)
    )


def name_for_upload(
    display_name: str,
    kind: MediaKind,
    tags: Iterable[str] = (),
    *,
    moment: Optional[CaptureMoment] = None,
    disambiguator: Optional[str] = None,
) -> str:
    """
    Chooses the path for a new file.

    Args:
        display_name: The original name of the file.
        kind: The kind of media.
        tags: The tags to add.
        moment: The ingestion time. Defaults to now.
        disambiguator: The disambiguator. A new one will be generated by
            default.

    Raises:
        `ValueError` if the name is empty, or `InvalidTagError` if any of
        the tags are invalid.

    Returns:
        The path to upload the file to.

    """
    if moment is None:
        moment = CaptureMoment.now()
    if disambiguator is None:
        disambiguator = new_disambiguator()

    stem, extension = split_extension(display_name)
    if not extension:
        extension = kind.default_extension

    return encode(
        sanitize_stem(stem),
        extension,
        kind,
        moment,
        disambiguator,
        normalize_tags(tags),
    )
