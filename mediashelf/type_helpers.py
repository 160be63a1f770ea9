"""
Miscellaneous type aliases.
"""


from pydantic import ConfigDict

ArbitraryTypesConfig = ConfigDict(arbitrary_types_allowed=True)
"""
Pydantic configuration that allows for arbitrary types, mostly so that
test fixtures can bundle mocks into pydantic dataclasses.
"""
