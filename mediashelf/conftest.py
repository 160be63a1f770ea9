"""
Testing configuration file.
"""


import pytest
from faker import Faker

from .media.tests.faker_providers import MediaProvider
from .repository.tests.faker_providers import GitHubProvider
from .tests.faker_providers import FastApiProvider


@pytest.fixture(autouse=True)
def set_faker_seed() -> None:
    """
    Sets a seed for the `Faker` that will be used for all tests.

    **Note:** This is deliberately function-scoped, so that test results
    don't depend on the order the tests run in.

    """
    Faker.seed(1337)


@pytest.fixture(autouse=True)
def add_custom_faker_providers(faker: Faker) -> None:
    """
    Adds our custom providers to every `Faker` instance so that we don't have to
    do it manually.

    Args:
        faker: The fixture to use for creating fake data.

    """
    faker.add_provider(MediaProvider)
    faker.add_provider(GitHubProvider)
    faker.add_provider(FastApiProvider)
