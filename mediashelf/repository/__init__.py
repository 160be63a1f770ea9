"""
Clients for remote content repositories.
"""


from .models import EntryType, FileContent, RepositoryEntry
from .repository_client import (
    NotFoundError,
    RepositoryClient,
    RepositoryOperationError,
    TransientError,
    VersionConflictError,
)
