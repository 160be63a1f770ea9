"""
Handles dependency injection for the repository backend.

The backend class is named in the configuration, so that it can be swapped
without code changes:

```
repository:
  type: mediashelf.repository.github_repository.GitHubRepository
  config:
    ...
```

The public API can be used directly as an argument for `Depends`.
"""


import importlib
import re
from contextlib import asynccontextmanager
from functools import cache
from typing import AsyncIterator, Type

from confuse import ConfigTypeError, ConfigView
from loguru import logger

from ..config import config
from .repository_client import RepositoryClient

_IMPORT_RE = re.compile(r"(?P<module>.+)\.(?P<class>\w+)")
"""
Regular expression to use for distinguishing the module and class parts
of an import statement.
"""


@cache
def _import_class(class_path: str) -> Type:
    """
    Dynamically imports a class.

    Args:
        class_path: The full, dotted import path for the class, such as
            would be used in an `import` statement.

    Raises:
        `ConfigTypeError` if `class_path` is invalid.

    Returns:
        The class that it loaded.

    """
    match = _IMPORT_RE.fullmatch(class_path)
    if match is None:
        raise ConfigTypeError(
            f"Class specification '{class_path}' in config is not valid."
        )
    class_name = match.group("class")
    module_path = match.group("module")

    logger.debug("Got module {} and class {}.", module_path, class_name)

    module = importlib.import_module(module_path)
    if not hasattr(module, class_name):
        raise ConfigTypeError(
            f"Class {class_name} does not exist in module {module_path}."
        )
    return getattr(module, class_name)


@asynccontextmanager
async def load_repository(view: ConfigView) -> AsyncIterator[RepositoryClient]:
    """
    Loads a repository client based on the specification in a `ConfigView`.

    Args:
        view: The view containing the `type` and `config` of the backend.

    Raises:
        `ConfigTypeError` if the configured class is not a
        `RepositoryClient`.

    Yields:
        The client that it loaded.

    """
    type_name = view["type"].as_str()
    logger.info("Loading repository backend '{}'...", type_name)
    type_class = _import_class(type_name)

    if not issubclass(type_class, RepositoryClient):
        raise ConfigTypeError(
            f"Expected a subclass of {RepositoryClient.__name__}, but got "
            f"{type_class.__name__} instead."
        )

    async with type_class.from_config(view["config"]) as client:
        yield client


async def repository_client() -> AsyncIterator[RepositoryClient]:
    """
    Yields:
        The configured `RepositoryClient`.

    """
    async with load_repository(config["repository"]) as client:
        yield client
