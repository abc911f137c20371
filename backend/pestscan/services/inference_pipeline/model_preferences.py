# backend/pestscan/services/inference_pipeline/model_preferences.py
"""
Model Preference Store

Persists which pretrained model tier is selected, plus a flag recording which
tier has already been downloaded. Both live in a small JSON key/value file.
Storage failures are logged and never raised; callers fall back to defaults.
"""

import json
from pathlib import Path
from typing import Dict, Optional, Union

from ...constants import DEFAULT_MODEL_SIZE, MODEL_CACHE_KEY, MODEL_SIZE_KEY
from ...enums import LoggerName, LogSource, ModelSize
from ...models.classification_model import ModelSelection
from ..logger import get_service_logger

logger = get_service_logger(LoggerName.MODEL_PREFERENCES, LogSource.PIPELINE)


class ModelPreferenceStore:
    """Key/value preference file for the local inference pipeline."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    # ------------------------------------------------------------------
    # raw key/value access
    # ------------------------------------------------------------------

    def _read(self) -> Dict[str, str]:
        try:
            if not self.path.exists():
                return {}
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError) as e:
            logger.warning(
                f"Could not read model preferences: {e}",
                extra_context={"path": str(self.path)},
            )
            return {}

    def _write(self, data: Dict[str, str]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            return True
        except OSError as e:
            logger.warning(
                f"Could not save model preferences: {e}",
                extra_context={"path": str(self.path)},
            )
            return False

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> bool:
        data = self._read()
        data[key] = value
        return self._write(data)

    def remove_item(self, key: str) -> bool:
        data = self._read()
        if key not in data:
            return True
        del data[key]
        return self._write(data)

    # ------------------------------------------------------------------
    # model selection
    # ------------------------------------------------------------------

    def get_selected_model_size(self) -> ModelSize:
        """Currently selected tier; unknown or missing values fall back to tiny."""
        saved = self.get_item(MODEL_SIZE_KEY)
        try:
            return ModelSize(saved) if saved else DEFAULT_MODEL_SIZE
        except ValueError:
            return DEFAULT_MODEL_SIZE

    def set_selected_model_size(self, size: ModelSize) -> None:
        """Persist a new selection and clear the cached flag."""
        self.set_item(MODEL_SIZE_KEY, ModelSize(size).value)
        self.remove_item(MODEL_CACHE_KEY)

    def is_model_cached(self) -> bool:
        """True when the cached flag names the currently selected tier."""
        return self.get_item(MODEL_CACHE_KEY) == self.get_selected_model_size().value

    def mark_model_cached(self, size: Optional[ModelSize] = None) -> None:
        """Record a tier as downloaded; defaults to the current selection."""
        size = ModelSize(size) if size else self.get_selected_model_size()
        self.set_item(MODEL_CACHE_KEY, size.value)

    def get_selection(self) -> ModelSelection:
        return ModelSelection(
            selected=self.get_selected_model_size(), cached=self.is_model_cached()
        )
