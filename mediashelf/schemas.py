"""
Schema definitions common to all locations.
"""


from typing import Any

from pydantic import BaseModel, ConfigDict


def _snake_to_camel_case(snake: str) -> str:
    """
    Converts a field name in snake case, i.e. `my_field`, to one in camel
    case, i.e. `myField`.

    Args:
        snake: The field name in snake case.

    Returns:
        The field name in camel case.

    """
    first_word, *other_words = snake.split("_")
    return first_word + "".join(word.capitalize() for word in other_words)


class ApiModel(BaseModel):
    """
    Implements the default configuration for models that are exposed through
    the API. Fields are immutable, and are serialized with camel-case names.
    """

    model_config = ConfigDict(
        alias_generator=_snake_to_camel_case,
        populate_by_name=True,
        frozen=True,
    )

    def model_dump_json(
        self, *args: Any, by_alias: bool = True, **kwargs: Any
    ) -> str:
        return super().model_dump_json(*args, by_alias=by_alias, **kwargs)
