import math
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr, field_validator


class DelayUpdate(BaseModel):
    """Body of ``POST /api/delay``. Omitted fields keep the stored value."""
    delay: Optional[Union[StrictInt, StrictFloat]] = Field(None, description="Delay in milliseconds")

    @field_validator("delay")
    @classmethod
    def validate_delay(cls, v):
        if v is None:
            return v
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError(f"Delay must be a finite number, got {v}")
        if v < 0:
            raise ValueError(f"Delay must be greater than or equal to 0, got {v}")
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v


class KillSwitchUpdate(BaseModel):
    """Body of ``POST /api/kill-switch``. Each omitted field keeps its stored value."""
    enabled: Optional[StrictBool] = None
    status: Optional[StrictInt] = None
    headers: Optional[Dict[StrictStr, StrictStr]] = None
    body: Optional[StrictStr] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and not 100 <= v <= 599:
            raise ValueError(f"Status code must be between 100 and 599, got {v}")
        return v

    @field_validator("headers")
    @classmethod
    def validate_headers(cls, v):
        # Response headers go out latin-1 encoded.
        for name, value in (v or {}).items():
            try:
                name.encode("latin-1")
                value.encode("latin-1")
            except UnicodeEncodeError:
                raise ValueError(f"Header {name!r} must contain only latin-1 characters") from None
        return v
