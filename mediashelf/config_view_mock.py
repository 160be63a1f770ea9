"""
Implements utilities for mocking Confuse `ConfigView`s.
"""


import unittest.mock as mock
from typing import Any, Dict

from confuse import ConfigView


class ConfigViewMock(mock.NonCallableMock):
    """
    Special mock for `ConfigView` instances that lets us set fake configuration.

    Examples:
        ```
        mock = ConfigViewMock()
        mock["upload"]["max_size_bytes"].as_number.return_value = 1024

        # Or, equivalently:
        mock = ConfigViewMock.from_dict({"upload": {"max_size_bytes": 1024}})
        ```
    """

    def __init__(self, *args: Any, **kwargs: Any):
        """
        Args:
            *args: Will be forwarded to the superclass.
            **kwargs: Will be forwarded to the superclass.
        """
        super().__init__(spec=ConfigView, instance=True, *args, **kwargs)
        self.__args = args
        self.__kwargs = kwargs

        # Sub-views that have been accessed so far, by key.
        self.__sub_views = {}

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "ConfigViewMock":
        """
        Creates a mock that mirrors a nested dictionary of configuration
        values. Leaf values are returned from all the usual accessors
        (`get`, `as_str`, `as_number`, etc.).

        Args:
            values: The configuration values.

        Returns:
            The mock that it created.

        """
        view = cls()
        view.__fill(values)
        return view

    def __fill(self, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if isinstance(value, dict):
                self[key].__fill(value)
            else:
                self[key].set_value(value)

    def set_value(self, value: Any) -> None:
        """
        Makes every accessor on this view return a particular value.

        Args:
            value: The value to return.

        """
        for accessor in ("get", "as_str", "as_number", "as_str_seq"):
            getattr(self, accessor).return_value = value

    def __getitem__(self, config_key: str) -> "ConfigViewMock":
        """
        Gets a mocked sub-view for a particular configuration key. The
        particular view will be unique for each key.

        Args:
            config_key: The configuration key.

        Returns:
            The corresponding view for this key.

        """
        sub_view = self.__sub_views.get(config_key)
        if sub_view is None:
            sub_view = ConfigViewMock(*self.__args, **self.__kwargs)
            self.__sub_views[config_key] = sub_view

        return sub_view
