from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case in Python.

    Requests may use either spelling.
    """

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel
