from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField


class Entity(BaseModel):
    """Base entity class with a store-assigned integer identifier."""

    model_config = ConfigDict(from_attributes=True)

    id: int = PydanticField(description="Identifier assigned by the store")


class EntityInput(BaseModel):
    """Base for create and update payloads.

    Unknown fields are rejected, which also keeps callers from supplying or
    changing an identifier.
    """

    model_config = ConfigDict(extra="forbid")
