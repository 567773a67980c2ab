"""
Shared response envelope pieces.

Finance payloads use camelCase keys on the wire.
"""

import math

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for payloads exchanged in camelCase; accepts snake_case too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageMeta(CamelModel):
    """Pagination metadata for list responses."""
    total: int
    per_page: int
    current_page: int
    last_page: int

    @classmethod
    def build(cls, total: int, page: int, per_page: int) -> "PageMeta":
        return cls(
            total=total,
            per_page=per_page,
            current_page=page,
            last_page=max(1, math.ceil(total / per_page)),
        )


class MessageResponse(BaseModel):
    """Envelope without payload."""
    code: int
    message: str
