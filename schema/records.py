from typing import Dict

from pydantic import BaseModel, Field

DELAY_KEY = "delay"
KILL_SWITCH_KEY = "kill-switch"


class KillSwitchRecord(BaseModel):
    enabled: bool = Field(False, description="When true, proxied requests get this response instead of upstream's")
    status: int = Field(200, ge=100, le=599, description="HTTP status code returned while enabled")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers returned while enabled")
    body: str = Field("", description="Response body returned while enabled")


DEFAULT_KILL_SWITCH = KillSwitchRecord(
    enabled=False,
    status=200,
    headers={"content-type": "application/json"},
    body='{"message": "blocked by kill-switch"}',
)
