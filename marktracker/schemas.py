"""Shared pydantic base models.

Request and response bodies use camelCase keys (``rollNumber``,
``fullName``); the snake_case field names are accepted on input too.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
