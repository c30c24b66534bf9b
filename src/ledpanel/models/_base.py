"""Base model and shared field types for ledpanel payloads.

Every wire/value model inherits from :class:`PanelBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase backend keys (``newItem``)
  map automatically to snake_case fields.
* Frozen instances, so models can be handed across component
  boundaries without defensive copies.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ledpanel._constants import MAX_LEVEL, MIN_LEVEL, NUM_CHANNELS

Level = Annotated[int, Field(ge=MIN_LEVEL, le=MAX_LEVEL)]
"""A single channel intensity (0-255)."""

ChannelIndex = Annotated[int, Field(ge=0, lt=NUM_CHANNELS)]
"""Index of one of the three addressable outputs."""

LevelTriple = tuple[Level, Level, Level]


class PanelBaseModel(BaseModel):
    """Base for ledpanel models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
