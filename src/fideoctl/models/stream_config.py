"""Stream configuration model."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StreamConfig(BaseModel):
    """One recordable stream.

    Only `id` and `directory` mean anything to the control plane; room URL,
    proxy, cookie, title and the rest pass through untouched.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Stable unique key")
    directory: Optional[str] = Field(None, description="Where recordings are written")
