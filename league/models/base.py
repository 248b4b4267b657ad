"""Base class for documents exchanged with storage."""

from typing import Any, Dict

from pydantic import BaseModel


class Document(BaseModel):
    """
    Pydantic model stored as a camelCase document.

    Fields can be populated by either their Python name or their alias.
    """

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict using field aliases."""
        return self.model_dump(by_alias=True, mode='json')
