"""Base model shared by persisted records.

Persisted JSON uses camelCase keys (``createdAt``, ``promptHistory``) so
files written by earlier releases stay readable.  Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys and JSON-compatible values.

        ``None`` values are written out so extra fields holding ``null``
        survive a round trip.
        """
        return self.model_dump(mode="json", by_alias=True)
