"""
Tests for the `catalog` module.
"""


import asyncio
import datetime
from typing import Iterable, List

import pytest
from faker import Faker
from pydantic.dataclasses import dataclass
from pytest_mock import MockFixture

from mediashelf.config_view_mock import ConfigViewMock
from mediashelf.media import catalog
from mediashelf.media.models import MediaKind, MediaRecord
from mediashelf.repository import (
    NotFoundError,
    RepositoryEntry,
    TransientError,
)
from mediashelf.repository.memory_repository import InMemoryRepository
from mediashelf.type_helpers import ArbitraryTypesConfig

_URL_TEMPLATE = "https://cdn.example.com/gh/owner/media@main/{path}"


def _record(
    name: str,
    date: str,
    tags: Iterable[str] = (),
    kind: MediaKind = MediaKind.IMAGE,
) -> MediaRecord:
    return MediaRecord(
        display_name=name,
        name=name,
        kind=kind,
        date=datetime.date.fromisoformat(date),
        tags=list(tags),
        size=1,
        url=f"https://example.com/{name}",
        path=f"{kind.folder}/{date}/{name}",
    )


class TestCatalog:
    """
    Tests for the `Catalog` class.
    """

    @dataclass(frozen=True, config=ArbitraryTypesConfig)
    class ConfigForTests:
        """
        Encapsulates standard configuration for most tests.

        Attributes:
            media_catalog: The `Catalog` under test.
            repository: The repository that it scans.

        """

        media_catalog: catalog.Catalog
        repository: InMemoryRepository

    @classmethod
    @pytest.fixture
    def config(cls, faker: Faker) -> ConfigForTests:
        """
        Generates standard configuration for most tests.

        Args:
            faker: The fixture to use for generating fake data.

        Returns:
            The configuration that it created.

        """
        repository = InMemoryRepository(
            {
                faker.media_path(MediaKind.IMAGE, ["a", "b"]): b"image1",
                faker.media_path(MediaKind.IMAGE, ["b", "c"]): b"image2",
                faker.media_path(MediaKind.IMAGE): b"image3",
                faker.media_path(MediaKind.VIDEO, ["v"]): b"video1",
            }
        )
        media_catalog = catalog.Catalog(
            repository, browse_url_template=_URL_TEMPLATE
        )

        return cls.ConfigForTests(
            media_catalog=media_catalog, repository=repository
        )

    def test_from_config(self, mocker: MockFixture) -> None:
        """
        Tests that `from_config` reads the configuration.

        Args:
            mocker: The fixture to use for mocking.

        """
        # Arrange.
        mock_config = ConfigViewMock.from_dict(
            dict(browse_url_template=_URL_TEMPLATE, max_concurrent_listings=2)
        )

        # Act.
        media_catalog = catalog.Catalog.from_config(mocker.Mock(), mock_config)

        # Assert.
        assert media_catalog.browse_url("a/b.png") == (
            "https://cdn.example.com/gh/owner/media@main/a/b.png"
        )

    def test_browse_url_quoting(self, config: ConfigForTests) -> None:
        """
        Tests that `browse_url` quotes special characters, but not slashes.

        Args:
            config: The configuration to use for testing.

        """
        # Act.
        url = config.media_catalog.browse_url(
            "images/2024-03-02/my photo#1.png"
        )

        # Assert.
        assert url == (
            "https://cdn.example.com/gh/owner/media@main/"
            "images/2024-03-02/my%20photo%231.png"
        )
        assert "?" not in url

    @pytest.mark.asyncio
    async def test_scan(self, config: ConfigForTests) -> None:
        """
        Tests that `scan` finds all the media of one kind.

        Args:
            config: The configuration to use for testing.

        """
        # Act.
        result = await config.media_catalog.scan(MediaKind.IMAGE)

        # Assert.
        assert result.error is None
        image_paths = [p for p in config.repository.paths if "images" in p]
        assert sorted(r.path for r in result.records) == image_paths

        for record in result.records:
            assert record.kind == MediaKind.IMAGE
            # Every record should be in the partition for its date.
            assert record.path.startswith(f"images/{record.date_key}/")
            assert record.url == _URL_TEMPLATE.format(path=record.path)
            assert record.size == len(b"image1")
            assert record.display_name.endswith(".png")

        all_tags = sorted(t for r in result.records for t in r.tags)
        assert all_tags == ["a", "b", "b", "c"]

    @pytest.mark.asyncio
    async def test_scan_missing_root(self) -> None:
        """
        Tests that `scan` returns nothing, and no error, when there is no
        media of that kind yet.
        """
        # Arrange.
        media_catalog = catalog.Catalog(
            InMemoryRepository(), browse_url_template=_URL_TEMPLATE
        )

        # Act.
        result = await media_catalog.scan(MediaKind.VIDEO)

        # Assert.
        assert result.records == []
        assert result.error is None
        result.raise_for_error()

    @pytest.mark.asyncio
    async def test_scan_ignores_non_files(self, mocker: MockFixture) -> None:
        """
        Tests that `scan` ignores entries that are neither files nor
        folders.

        Args:
            mocker: The fixture to use for mocking.

        """
        # Arrange.
        mock_client = mocker.Mock()
        mock_client.list_folder = mocker.AsyncMock(
            return_value=[
                RepositoryEntry(
                    name="link", path="videos/link", type="other", version="v"
                )
            ]
        )
        media_catalog = catalog.Catalog(
            mock_client, browse_url_template=_URL_TEMPLATE
        )

        # Act.
        result = await media_catalog.scan(MediaKind.VIDEO)

        # Assert.
        assert result.records == []
        assert result.error is None

    @pytest.mark.asyncio
    async def test_scan_malformed_path(self, faker: Faker) -> None:
        """
        Tests that a file outside of a date partition aborts the records for
        that folder only.

        Args:
            faker: The fixture to use for generating fake data.

        """
        # Arrange.
        good_path = faker.media_path(MediaKind.IMAGE)
        repository = InMemoryRepository(
            {good_path: b"good", "images/stray.png": b"stray"}
        )
        media_catalog = catalog.Catalog(
            repository, browse_url_template=_URL_TEMPLATE
        )

        # Act.
        result = await media_catalog.scan(MediaKind.IMAGE)

        # Assert.
        assert [r.path for r in result.records] == [good_path]
        assert isinstance(result.error, catalog.CatalogScanError)
        assert set(result.error.failures) == {"images"}
        assert isinstance(
            result.error.failures["images"], catalog.MalformedPathError
        )
        with pytest.raises(catalog.CatalogScanError):
            result.raise_for_error()

    @pytest.mark.asyncio
    async def test_scan_partial_failure(
        self, config: ConfigForTests, mocker: MockFixture
    ) -> None:
        """
        Tests that `scan` still returns what it can when some folders fail
        to list.

        Args:
            config: The configuration to use for testing.
            mocker: The fixture to use for mocking.

        """
        # Arrange.
        image_paths = [p for p in config.repository.paths if "images" in p]
        bad_folder = image_paths[0].rsplit("/", 1)[0]
        real_list_folder = config.repository.list_folder

        async def _list_folder(path: str):
            if path == bad_folder:
                raise TransientError("rate limited", path=path)
            return await real_list_folder(path)

        mocker.patch.object(
            config.repository, "list_folder", side_effect=_list_folder
        )

        # Act.
        result = await config.media_catalog.scan(MediaKind.IMAGE)

        # Assert.
        assert isinstance(result.error, catalog.CatalogScanError)
        assert set(result.error.failures) == {bad_folder}
        assert bad_folder in str(result.error)
        expected = [p for p in image_paths if not p.startswith(bad_folder)]
        assert sorted(r.path for r in result.records) == expected

    @pytest.mark.asyncio
    async def test_all_tags(self, config: ConfigForTests) -> None:
        """
        Tests that `all_tags` finds the tags from both kinds of media, each
        exactly once, sorted.

        Args:
            config: The configuration to use for testing.

        """
        # Act.
        tags = await config.media_catalog.all_tags()

        # Assert.
        assert tags == ["a", "b", "c", "v"]

    @pytest.mark.asyncio
    async def test_all_tags_partial(
        self, config: ConfigForTests, mocker: MockFixture
    ) -> None:
        """
        Tests that `all_tags` refuses to return incomplete results.

        Args:
            config: The configuration to use for testing.
            mocker: The fixture to use for mocking.

        """
        # Arrange.
        real_list_folder = config.repository.list_folder

        async def _list_folder(path: str):
            if path.startswith("videos/"):
                raise TransientError("timed out", path=path)
            return await real_list_folder(path)

        mocker.patch.object(
            config.repository, "list_folder", side_effect=_list_folder
        )

        # Act and assert.
        with pytest.raises(catalog.CatalogScanError):
            await config.media_catalog.all_tags()

    @pytest.mark.asyncio
    async def test_all_tags_concurrency_limit(
        self, mocker: MockFixture
    ) -> None:
        """
        Tests that `all_tags` never has more listings in flight than the
        limit, even though it scans both kinds of media.

        Args:
            mocker: The fixture to use for mocking.

        """
        # Arrange.
        repository = InMemoryRepository(
            {
                f"{kind.folder}/2024-03-0{day}/x_10-11-12-ab12cd_t{day}.bin": (
                    b"data"
                )
                for kind in MediaKind
                for day in range(1, 5)
            }
        )
        media_catalog = catalog.Catalog(
            repository,
            browse_url_template=_URL_TEMPLATE,
            max_concurrent_listings=2,
        )

        real_list_folder = repository.list_folder
        in_flight = 0
        peak = 0

        async def _list_folder(path: str) -> List[RepositoryEntry]:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            try:
                # Give other listings a chance to start.
                await asyncio.sleep(0)
                return await real_list_folder(path)
            finally:
                in_flight -= 1

        mocker.patch.object(
            repository, "list_folder", side_effect=_list_folder
        )

        # Act.
        tags = await media_catalog.all_tags()

        # Assert.
        assert tags == ["t1", "t2", "t3", "t4"]
        assert peak == 2


def test_scan_result_grouping() -> None:
    """
    Tests that `ScanResult` groups records by date correctly.
    """
    # Arrange.
    records = [
        _record("a.png", "2024-01-02"),
        _record("b.png", "2023-12-31"),
        _record("c.png", "2024-01-02"),
        _record("d.png", "2024-10-01"),
    ]
    result = catalog.ScanResult(kind=MediaKind.IMAGE, records=records)

    # Act.
    by_date = result.by_date
    dates = result.dates_descending()

    # Assert.
    assert dates == ["2024-10-01", "2024-01-02", "2023-12-31"]
    # Within a date, records keep their order.
    assert [r.name for r in by_date["2024-01-02"]] == ["a.png", "c.png"]


def test_catalog_scan_error_message() -> None:
    """
    Tests that `CatalogScanError` names every failed folder.
    """
    # Act.
    error = catalog.CatalogScanError(
        MediaKind.VIDEO,
        {
            "videos/2024-01-01": NotFoundError("x"),
            "videos/2024-01-02": TransientError("y"),
        },
    )

    # Assert.
    assert "videos/2024-01-01" in str(error)
    assert "videos/2024-01-02" in str(error)
    assert error.kind == MediaKind.VIDEO


@pytest.mark.parametrize(
    ("search", "tag", "expected"),
    [
        (None, None, ["Beach.png", "city.png", "other.png"]),
        ("beach", None, ["Beach.png"]),
        ("SUMMER", None, ["Beach.png", "city.png"]),
        (None, "summer", ["Beach.png", "city.png"]),
        (None, "summ", []),
        ("city", "summer", ["city.png"]),
    ],
    ids=("none", "name", "tag_search", "tag", "partial_tag", "both"),
)
def test_filter_records(search: str, tag: str, expected: List[str]) -> None:
    """
    Tests that `filter_records` works.

    Args:
        search: The search string.
        tag: The tag to filter by.
        expected: The names of the records we expect to keep.

    """
    # Arrange.
    records = [
        _record("Beach.png", "2024-01-01", ["summer"]),
        _record("city.png", "2024-01-02", ["summer", "urban"]),
        _record("other.png", "2024-01-03"),
    ]

    # Act.
    filtered = catalog.filter_records(records, search=search, tag=tag)

    # Assert.
    assert [r.name for r in filtered] == expected
