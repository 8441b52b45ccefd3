from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

HANDLE_MAX_LENGTH = 25
USERNAME_MAX_LENGTH = 30
URL_PATTERN = r"^https?://\S+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CamelModel(BaseModel):
    """Models exchanged with clients use camelCase names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatchModel(CamelModel):
    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict[str, Any]:
        """Only the fields the client sent, keyed by their wire names."""
        return self.model_dump(by_alias=True, exclude_unset=True)
