from __future__ import annotations
import math
import time
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, field_validator


class FrameMessage(BaseModel):
    """One message on /ws/landmarks: either raw landmarks or an already-classified pose."""
    type: Literal["landmarks", "label"]
    landmarks: Optional[List[Any]] = None
    pose: Optional[Literal["up", "down"]] = None
    ts: Optional[float] = None

    @field_validator("ts", mode="before")
    @classmethod
    def _finite_ts(cls, v):
        # unusable client clocks fall back to server time in frame_ts()
        if isinstance(v, bool):
            return None
        try:
            v = float(v)
        except (TypeError, ValueError):
            return None
        return v if math.isfinite(v) else None

    def frame_ts(self) -> float:
        return self.ts if self.ts is not None else time.time()
