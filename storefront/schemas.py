"""Shared Pydantic base for request and response schemas.

Python attributes are snake_case; the JSON wire format is camelCase
(``userId``, ``orderNumber``...). Both spellings are accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
