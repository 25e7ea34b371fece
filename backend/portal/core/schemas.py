from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageOut(ApiModel):
    message: str


class SuccessOut(ApiModel):
    success: bool = True
    message: str
