from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr


class SessionCreateRequest(BaseModel):
    scale_root: Optional[Union[StrictInt, StrictStr]] = Field(default=None, description="Sa as note name or 0-11")
    swar_mode: Optional[str] = Field(default=None, description="exact | nearest7")


class SessionResponse(BaseModel):
    session_id: str
    created_at: str
    running: bool
    scale_root: int
    scale_root_name: str
    swar_mode: str
    frames: int = 0
    pitched_frames: int = 0


class FrameRequest(BaseModel):
    samples: List[float] = Field(default_factory=list)
    sample_rate: float = Field(..., description="Capture sample rate (Hz)")
    timestamp: Optional[float] = Field(default=None, description="Tick time in seconds")


class FrameResponse(BaseModel):
    frequency_hz: float
    has_pitch: bool
    degree: Optional[str] = None
    notation: Optional[str] = None
    saptak: Optional[str] = None
    saptak_name: Optional[str] = None
    octave: Optional[int] = None
    clarity_tier: Optional[str] = None
    note_name: Optional[str] = None
    cents_deviation: float = 0.0
    timestamp: float = 0.0
    audio_levels: List[int] = Field(default_factory=list)


class ScaleRequest(BaseModel):
    scale_root: Union[StrictInt, StrictStr]


class ScaleInfo(BaseModel):
    name: str
    index: int
    frequency_hz: float


class HealthResponse(BaseModel):
    status: str
    sessions: int
    version: str
