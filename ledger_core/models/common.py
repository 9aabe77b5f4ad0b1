from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
import uuid

def gen_id() -> str:
    return uuid.uuid4().hex[:12]

class CamelModel(BaseModel):
    """Persisted models: snake_case attributes, camelCase JSON keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # tolerate keys written by older versions
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
