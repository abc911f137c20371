"""
Local Inference Domain - Pest Classification Without a Server Round Trip

Loads a pretrained image classifier on this machine and maps its labels to a
coarse pest/infestation verdict.

Factory Usage:
```python
from pestscan.services.inference_pipeline import create_pest_classifier

classifier = create_pest_classifier()
result = await classifier.classify("leaf.jpg")
```
"""

from pathlib import Path
from typing import Optional, Union

from .image_utils import compute_target_size, load_image, prepare_for_inference
from .label_analysis import analyze_pest_labels, determine_infestation_level
from .model_preferences import ModelPreferenceStore
from .pest_classifier import (
    PestClassifier,
    detect_acceleration_support,
    list_model_options,
)


def create_pest_classifier(
    preferences_path: Optional[Union[str, Path]] = None,
) -> PestClassifier:
    """
    Factory function to create a classifier backed by the preference file.

    Args:
        preferences_path: Optional override of the configured preference file
    """
    if preferences_path is None:
        from ...config import settings

        preferences_path = settings.preferences_path

    return PestClassifier(ModelPreferenceStore(preferences_path))


__all__ = [
    "create_pest_classifier",
    "PestClassifier",
    "ModelPreferenceStore",
    "analyze_pest_labels",
    "determine_infestation_level",
    "compute_target_size",
    "load_image",
    "prepare_for_inference",
    "detect_acceleration_support",
    "list_model_options",
]
