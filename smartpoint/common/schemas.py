"""
Shared Pydantic base for the JSON API.

Clients send and receive camelCase keys; snake_case is accepted on input.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


class MessageResponse(CamelModel):
    success: bool = True
    message: str
