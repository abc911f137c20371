# backend/pestscan/services/inference_pipeline/pest_classifier.py
"""
Local Pest Classifier

Runs a pretrained image classifier on this machine and turns its label
distribution into a pest/infestation verdict, without any call to the remote
detection function.

Pipeline lifecycle:
    UNLOADED --ensure_model_loaded--> LOADING --ok--> READY(variant)
    LOADING --accelerated backend fails--> LOADING_FALLBACK --ok--> READY(variant)
    LOADING_FALLBACK --fails--> UNLOADED (last_error set)
    READY(variant) --select_model_variant--> UNLOADED
"""

import asyncio
import time
from typing import Any, Callable, List, Optional

from huggingface_hub import snapshot_download
from tqdm.auto import tqdm

from ...constants import CLASSIFIER_TASK, CLASSIFIER_TOP_K, MODEL_OPTIONS
from ...enums import (
    InferenceDevice,
    LogEmoji,
    LoggerName,
    LogSource,
    ModelSize,
    PipelineState,
)
from ...exceptions import ModelLoadError
from ...models.classification_model import (
    ClassificationResult,
    ClassifierStatus,
    LabelScore,
    ModelOption,
)
from ..logger import get_service_logger
from .image_utils import ImageSource, prepare_for_inference
from .label_analysis import analyze_pest_labels, determine_infestation_level
from .model_preferences import ModelPreferenceStore

logger = get_service_logger(
    LoggerName.INFERENCE_PIPELINE, LogSource.PIPELINE, default_emoji=LogEmoji.ROBOT
)

ProgressCallback = Callable[[int], None]
StatusCallback = Callable[[str], None]
PipelineFactory = Callable[[str, InferenceDevice], Any]
ModelDownloader = Callable[[str, Optional[ProgressCallback]], Any]


def list_model_options() -> List[ModelOption]:
    """All selectable pretrained models, smallest first."""
    return [
        ModelOption(
            size=size,
            id=option["id"],
            name=option["name"],
            download_size=option["size"],
            description=option["description"],
        )
        for size, option in MODEL_OPTIONS.items()
    ]


def detect_acceleration_support() -> bool:
    """
    Check whether an accelerated compute device is usable.

    Never raises; any probe failure reports False.
    """
    try:
        import torch

        return bool(torch.cuda.is_available())
    except Exception as e:
        logger.debug(f"Acceleration probe failed: {e}")
        return False


def _make_progress_tqdm(on_progress: ProgressCallback):
    """Build a tqdm class that forwards coarse percentages to on_progress."""

    class ProgressTqdm(tqdm):
        def update(self, n=1):
            result = super().update(n)
            if self.total:
                on_progress(min(100, int(round(self.n * 100 / self.total))))
            return result

    return ProgressTqdm


def download_model_snapshot(
    model_id: str, on_progress: Optional[ProgressCallback] = None
) -> str:
    """Download (or reuse the local cache of) a model repository."""
    if on_progress is None:
        return snapshot_download(repo_id=model_id)
    return snapshot_download(
        repo_id=model_id, tqdm_class=_make_progress_tqdm(on_progress)
    )


def build_classification_pipeline(model_id: str, device: InferenceDevice) -> Any:
    """Construct a transformers image-classification pipeline on a device."""
    from transformers import pipeline

    return pipeline(CLASSIFIER_TASK, model=model_id, device=device.value)


class PestClassifier:
    """
    Owned inference pipeline plus the pest heuristic applied to its output.

    Each instance holds its own pipeline handle, so tests and multiple
    application instances never share state.
    """

    def __init__(
        self,
        preferences: ModelPreferenceStore,
        pipeline_factory: Optional[PipelineFactory] = None,
        downloader: Optional[ModelDownloader] = None,
        acceleration_probe: Optional[Callable[[], bool]] = None,
    ):
        """
        Initialize the classifier.

        Args:
            preferences: Store holding the selected model tier and cached flag
            pipeline_factory: Builds a classifier callable for (model_id, device)
            downloader: Fetches model files, reporting progress percentages
            acceleration_probe: Returns True when an accelerated device exists
        """
        self.preferences = preferences
        self._pipeline_factory = pipeline_factory or build_classification_pipeline
        self._downloader = downloader or download_model_snapshot
        self._acceleration_probe = acceleration_probe or detect_acceleration_support

        self._pipeline: Any = None
        self._loaded_model: Optional[ModelSize] = None
        self._is_loading = False
        self._state = PipelineState.UNLOADED
        self.last_error: Optional[str] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def loaded_model(self) -> Optional[ModelSize]:
        return self._loaded_model

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def is_ready(self) -> bool:
        """True when a pipeline for the currently selected tier is loaded."""
        return (
            self._pipeline is not None
            and self._loaded_model == self.preferences.get_selected_model_size()
        )

    def select_model_variant(self, size: ModelSize) -> None:
        """
        Switch the active model tier.

        Clears the cached flag and discards any loaded pipeline so the next
        inference loads the new tier.
        """
        size = ModelSize(size)
        self.preferences.set_selected_model_size(size)
        self._discard_pipeline()
        logger.info(
            f"Selected pest model tier '{size.value}'",
            extra_context={"model_id": MODEL_OPTIONS[size]["id"]},
        )

    def _discard_pipeline(self) -> None:
        self._pipeline = None
        self._loaded_model = None
        if not self._is_loading:
            self._state = PipelineState.UNLOADED

    def _build(
        self,
        model_id: str,
        device: InferenceDevice,
        on_progress: Optional[ProgressCallback],
    ) -> Any:
        self._downloader(model_id, on_progress)
        return self._pipeline_factory(model_id, device)

    async def ensure_model_loaded(
        self, on_progress: Optional[ProgressCallback] = None
    ) -> bool:
        """
        Lazily load the pipeline for the selected model tier.

        Tries the accelerated backend first and falls back to the portable one
        with the same model id. Calls made while another load is in flight
        return False immediately instead of waiting for it.

        Args:
            on_progress: Optional callback receiving download progress (0-100)

        Returns:
            True when the pipeline is ready, False otherwise
        """
        selected = self.preferences.get_selected_model_size()

        if self._pipeline is not None and self._loaded_model == selected:
            return True
        if self._is_loading:
            return False

        self._is_loading = True
        self._discard_pipeline()
        model_id = MODEL_OPTIONS[selected]["id"]

        try:
            logger.info(
                f"Initializing pest detection model: {model_id}",
                emoji=LogEmoji.PENDING,
            )
            self._state = PipelineState.LOADING
            try:
                pipeline = await asyncio.to_thread(
                    self._build, model_id, InferenceDevice.ACCELERATED, on_progress
                )
                logger.info("Pest detection model loaded", emoji=LogEmoji.SUCCESS)
            except Exception as accelerated_error:
                logger.warning(
                    f"Accelerated backend failed, trying portable fallback: {accelerated_error}",
                    extra_context={"model_id": model_id},
                )
                self._state = PipelineState.LOADING_FALLBACK
                try:
                    pipeline = await asyncio.to_thread(
                        self._build, model_id, InferenceDevice.PORTABLE, on_progress
                    )
                except Exception as portable_error:
                    self.last_error = str(portable_error)
                    self._state = PipelineState.UNLOADED
                    logger.error(
                        f"Failed to load pest detection model {model_id}",
                        exception=portable_error,
                    )
                    return False
                logger.info(
                    "Pest detection model loaded with portable fallback",
                    emoji=LogEmoji.SUCCESS,
                )

            if self.preferences.get_selected_model_size() != selected:
                logger.info(
                    f"Model tier changed while loading; discarding {model_id}",
                    emoji=LogEmoji.WARNING,
                )
                self._state = PipelineState.UNLOADED
                return False

            self._pipeline = pipeline
            self._loaded_model = selected
            self._state = PipelineState.READY
            self.last_error = None
            self.preferences.mark_model_cached(selected)
            return True
        finally:
            self._is_loading = False

    async def download_and_cache_model(
        self, on_progress: Optional[ProgressCallback] = None
    ) -> bool:
        """One-time download entry point; marks the tier cached when loaded."""
        if self.is_ready():
            self.preferences.mark_model_cached()
            return True
        return await self.ensure_model_loaded(on_progress)

    async def classify(
        self, image: ImageSource, on_status: Optional[StatusCallback] = None
    ) -> ClassificationResult:
        """
        Classify an image and derive the pest verdict.

        Loads the selected model first if needed. Never retries; a failure
        propagates to the caller.

        Args:
            image: Path, URL, bytes, PIL image or OpenCV frame
            on_status: Optional callback receiving human readable stage names

        Returns:
            ClassificationResult with labels, verdict and elapsed time

        Raises:
            ModelLoadError: If the model cannot be loaded
        """
        start_time = time.perf_counter()

        if not self.is_ready():
            if on_status:
                on_status("Loading AI model...")
            if not await self.ensure_model_loaded():
                raise ModelLoadError("Failed to initialize pest detection model")

        # A variant change during the awaits below must not swap the model mid-call
        pipeline = self._pipeline

        if on_status:
            on_status("Processing image...")
        payload = await asyncio.to_thread(prepare_for_inference, image)

        if on_status:
            on_status("Analyzing for pests...")
        raw_results = await asyncio.to_thread(
            pipeline, payload, top_k=CLASSIFIER_TOP_K
        )

        labels = [
            LabelScore(
                label=str(item["label"]),
                score=min(1.0, max(0.0, float(item["score"]))),
            )
            for item in raw_results[:CLASSIFIER_TOP_K]
        ]
        logger.debug(
            "Classification results",
            extra_context={
                "labels": [(item.label, round(item.score, 3)) for item in labels]
            },
        )

        is_pest, pest_types, confidence = analyze_pest_labels(labels)
        infestation_level = determine_infestation_level(is_pest, confidence)
        processing_time_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"Local scan finished: {infestation_level.value}",
            emoji=LogEmoji.BUG if is_pest else LogEmoji.SUCCESS,
            extra_context={
                "is_pest": is_pest,
                "confidence": round(confidence, 1),
                "processing_time_ms": round(processing_time_ms, 1),
            },
        )

        return ClassificationResult(
            labels=labels,
            is_pest=is_pest,
            pest_types=pest_types,
            confidence=confidence,
            infestation_level=infestation_level,
            processing_time_ms=processing_time_ms,
        )

    def detect_acceleration_support(self) -> bool:
        try:
            return bool(self._acceleration_probe())
        except Exception:
            return False

    def get_status(self) -> ClassifierStatus:
        return ClassifierStatus(
            state=self._state,
            selected=self.preferences.get_selected_model_size(),
            loaded=self.is_ready(),
            loaded_model=self._loaded_model,
            cached=self.preferences.is_model_cached(),
            last_error=self.last_error,
        )
