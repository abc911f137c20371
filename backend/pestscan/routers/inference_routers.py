# backend/pestscan/routers/inference_routers.py
"""
Local inference HTTP endpoints.

Role: On-device pest classification and model management
Responsibilities: Image classification, model tier listing/selection,
                 explicit model download, acceleration probe
Interactions: Uses PestClassifier

Architecture: API Layer - delegates all business logic to services
"""

from typing import Any, Dict

from fastapi import APIRouter, File, UploadFile

from ..dependencies import PestClassifierDep
from ..exceptions import ModelLoadError, ValidationError
from ..models.classification_model import ModelSelectionUpdate
from ..services.inference_pipeline import list_model_options
from ..utils.router_helpers import handle_exceptions
from ..utils.response_helpers import ResponseFormatter

router = APIRouter(prefix="/inference", tags=["inference"])


@router.post("/classify", response_model=Dict[str, Any])
@handle_exceptions("classify image")
async def classify_image(
    classifier: PestClassifierDep, image: UploadFile = File(...)
) -> Dict[str, Any]:
    """Run the local classifier on an uploaded image."""
    if image.content_type and not image.content_type.startswith("image/"):
        raise ValidationError(f"{image.filename} is not an image file")

    content = await image.read()
    if not content:
        raise ValidationError(f"{image.filename} is empty")

    result = await classifier.classify(content)
    return ResponseFormatter.success(
        "Image analyzed", data=result.model_dump(mode="json")
    )


@router.get("/models", response_model=Dict[str, Any])
@handle_exceptions("list models")
async def get_model_options() -> Dict[str, Any]:
    return ResponseFormatter.success(
        "Model options retrieved",
        data=[option.model_dump(mode="json") for option in list_model_options()],
    )


@router.get("/model-selection", response_model=Dict[str, Any])
@handle_exceptions("get model selection")
async def get_model_selection(classifier: PestClassifierDep) -> Dict[str, Any]:
    return ResponseFormatter.success(
        "Model selection retrieved",
        data=classifier.get_status().model_dump(mode="json"),
    )


@router.put("/model-selection", response_model=Dict[str, Any])
@handle_exceptions("update model selection")
async def update_model_selection(
    classifier: PestClassifierDep, selection: ModelSelectionUpdate
) -> Dict[str, Any]:
    """Switch the model tier; the next classification loads it."""
    classifier.select_model_variant(selection.size)
    return ResponseFormatter.success(
        f"Model tier set to {selection.size.value}",
        data=classifier.get_status().model_dump(mode="json"),
    )


@router.post("/model/download", response_model=Dict[str, Any])
@handle_exceptions("download model")
async def download_model(classifier: PestClassifierDep) -> Dict[str, Any]:
    """Download and load the selected model ahead of the first scan."""
    if not await classifier.download_and_cache_model():
        if classifier.is_loading:
            return ResponseFormatter.success(
                "Model download already in progress",
                data=classifier.get_status().model_dump(mode="json"),
            )
        raise ModelLoadError(classifier.last_error or "Failed to download model")

    return ResponseFormatter.success(
        "Model ready", data=classifier.get_status().model_dump(mode="json")
    )


@router.get("/acceleration", response_model=Dict[str, Any])
@handle_exceptions("check acceleration support")
async def get_acceleration_support(classifier: PestClassifierDep) -> Dict[str, Any]:
    return ResponseFormatter.success(
        "Acceleration support checked",
        data={"accelerated": classifier.detect_acceleration_support()},
    )
