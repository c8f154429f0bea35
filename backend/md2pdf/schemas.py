from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

FontSize = Literal["small", "medium", "large"]
ColumnCount = Literal[1, 2, 3]

FALLBACK_FILENAME = "document"


class RenderOptions(BaseModel):
    font_size: FontSize = "medium"
    columns: ColumnCount = 1
    dark_mode: bool = False

    model_config = {"frozen": True}


@dataclass(frozen=True)
class Document:
    source_url: str
    raw_text: str
    derived_filename: str


@dataclass(frozen=True)
class FitResult:
    measured_content_height_px: float
    scale_factor: float


class PipelineStatus(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    EXPORTING = "EXPORTING"


class HealthResponse(BaseModel):
    status: str
    page_width_px: int
    page_height_px: int
    safe_height_px: int
    scale_floor: float
    fetch_timeout_s: float
    render_timeout_ms: int
    default_options: RenderOptions


class PipelineSnapshot(BaseModel):
    status: PipelineStatus
    error: str | None = None
    filename: str = Field(default=FALLBACK_FILENAME)
    source_url: str = ""
    options: RenderOptions = Field(default_factory=RenderOptions)
