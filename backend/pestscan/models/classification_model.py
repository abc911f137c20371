# backend/pestscan/models/classification_model.py
"""
Local Inference Domain Models

Pydantic models for classifier output and the pest verdict derived from it.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..enums import InfestationLevel, ModelSize, PipelineState


class LabelScore(BaseModel):
    """A single label produced by the image classifier."""

    label: str
    score: float = Field(..., ge=0.0, le=1.0)


class ClassificationResult(BaseModel):
    """Pest verdict computed entirely on this machine."""

    labels: List[LabelScore] = Field(default_factory=list, max_length=10)
    is_pest: bool
    pest_types: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=100.0, description="0-100 scale")
    infestation_level: InfestationLevel
    processing_time_ms: float = Field(..., ge=0.0)


class ModelOption(BaseModel):
    """Description of one selectable pretrained model."""

    size: ModelSize
    id: str
    name: str
    download_size: str
    description: str


class ModelSelection(BaseModel):
    """Persisted model preference plus the cached-download flag."""

    selected: ModelSize
    cached: bool


class ClassifierStatus(BaseModel):
    state: PipelineState
    selected: ModelSize
    loaded: bool
    loaded_model: Optional[ModelSize] = None
    cached: bool
    last_error: Optional[str] = None


class ModelSelectionUpdate(BaseModel):
    """Request body for switching the active model tier."""

    size: ModelSize
