"""
Dependencies that are shared by the endpoints.
"""


from fastapi import Depends

from ..config import config
from ..media.catalog import Catalog
from ..media.tag_mutator import TagMutator
from ..media.uploader import Uploader
from ..repository import RepositoryClient
from ..repository.backend_manager import repository_client


def catalog(
    client: RepositoryClient = Depends(repository_client),
) -> Catalog:
    """
    Args:
        client: The repository to use.

    Returns:
        The catalog for that repository.

    """
    return Catalog.from_config(client, config["catalog"])


def tag_mutator(
    client: RepositoryClient = Depends(repository_client),
) -> TagMutator:
    """
    Args:
        client: The repository to use.

    Returns:
        The `TagMutator` for that repository.

    """
    return TagMutator(client)


def uploader(
    client: RepositoryClient = Depends(repository_client),
    media_catalog: Catalog = Depends(catalog),
) -> Uploader:
    """
    Args:
        client: The repository to use.
        media_catalog: The catalog, which is used to generate browse URLs.

    Returns:
        The `Uploader` for that repository.

    """
    return Uploader.from_config(
        client, config["upload"], browse_url=media_catalog.browse_url
    )
