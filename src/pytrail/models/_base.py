"""Base model for pytrail value types.

Every pytrail model inherits from :class:`TrailBaseModel` which is
frozen (values are immutable once built) and accepts both field names and
their aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TrailBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
