"""
Naming, cataloging, and tagging of media stored in a repository.
"""


from .catalog import Catalog, CatalogScanError, MalformedPathError, ScanResult
from .models import (
    CaptureMoment,
    DecodedName,
    InvalidTagError,
    MediaKind,
    MediaRecord,
    UnsupportedMediaError,
)
from .name_codec import AmbiguousNameError
