"""
app/schemas/base.py

Base model for request bodies. Clients send camelCase keys (the same
names stored in MongoDB); Python code reads snake_case attributes.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_document(self, exclude_unset: bool = True) -> dict:
        """Dumps the model with camelCase keys, ready to be written to MongoDB."""
        return self.model_dump(by_alias=True, exclude_unset=exclude_unset, mode="json")
