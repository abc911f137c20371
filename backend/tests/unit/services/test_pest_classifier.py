#!/usr/bin/env python3
"""
Unit tests for the local pest classifier.

Uses a fake pipeline factory and downloader so no model is downloaded.
"""

import asyncio
import time

import pytest
from PIL import Image

from pestscan.constants import FALL_ARMYWORM_SENTINEL, MODEL_OPTIONS
from pestscan.enums import InfestationLevel, InferenceDevice, ModelSize, PipelineState
from pestscan.exceptions import ModelLoadError
from pestscan.services.inference_pipeline import pest_classifier
from pestscan.services.inference_pipeline.pest_classifier import (
    PestClassifier,
    list_model_options,
)


@pytest.mark.unit
class TestModelLoading:
    """Test suite for the pipeline lifecycle."""

    @pytest.mark.asyncio
    async def test_loads_on_accelerated_device(
        self, classifier, pipeline_factory, preference_store
    ):
        assert classifier.state == PipelineState.UNLOADED

        assert await classifier.ensure_model_loaded() is True

        assert classifier.state == PipelineState.READY
        assert classifier.loaded_model == ModelSize.TINY
        assert pipeline_factory.builds == [
            (MODEL_OPTIONS[ModelSize.TINY]["id"], InferenceDevice.ACCELERATED)
        ]
        assert preference_store.is_model_cached() is True

    @pytest.mark.asyncio
    async def test_falls_back_to_portable_device(self, classifier, pipeline_factory):
        pipeline_factory.fail_devices = {InferenceDevice.ACCELERATED}

        assert await classifier.ensure_model_loaded() is True

        model_id = MODEL_OPTIONS[ModelSize.TINY]["id"]
        assert pipeline_factory.builds == [
            (model_id, InferenceDevice.ACCELERATED),
            (model_id, InferenceDevice.PORTABLE),
        ]
        assert classifier.state == PipelineState.READY

    @pytest.mark.asyncio
    async def test_double_failure_leaves_unloaded(self, classifier, pipeline_factory):
        pipeline_factory.fail_devices = {
            InferenceDevice.ACCELERATED,
            InferenceDevice.PORTABLE,
        }

        assert await classifier.ensure_model_loaded() is False

        assert classifier.state == PipelineState.UNLOADED
        assert classifier.is_loading is False
        assert "cpu backend unavailable" in classifier.last_error

    @pytest.mark.asyncio
    async def test_already_loaded_is_noop(self, classifier, pipeline_factory):
        await classifier.ensure_model_loaded()
        await classifier.ensure_model_loaded()

        assert len(pipeline_factory.builds) == 1

    @pytest.mark.asyncio
    async def test_progress_is_reported(self, classifier):
        progress = []

        await classifier.ensure_model_loaded(on_progress=progress.append)

        assert progress == [25, 50, 100]

    @pytest.mark.asyncio
    async def test_concurrent_call_returns_not_ready(
        self, preference_store, pipeline_factory
    ):
        def slow_downloader(model_id, on_progress=None):
            time.sleep(0.3)

        classifier = PestClassifier(
            preference_store,
            pipeline_factory=pipeline_factory,
            downloader=slow_downloader,
        )

        first_load = asyncio.create_task(classifier.ensure_model_loaded())
        await asyncio.sleep(0.05)

        assert classifier.is_loading is True
        assert await classifier.ensure_model_loaded() is False
        assert await first_load is True
        assert len(pipeline_factory.builds) == 1

    @pytest.mark.asyncio
    async def test_changing_variant_discards_pipeline(
        self, classifier, pipeline_factory, preference_store
    ):
        await classifier.ensure_model_loaded()
        assert classifier.is_ready() is True

        classifier.select_model_variant(ModelSize.FULL)

        assert classifier.state == PipelineState.UNLOADED
        assert classifier.is_ready() is False
        assert preference_store.is_model_cached() is False

        await classifier.classify(Image.new("RGB", (64, 64)))

        assert pipeline_factory.builds[-1] == (
            MODEL_OPTIONS[ModelSize.FULL]["id"],
            InferenceDevice.ACCELERATED,
        )
        assert len(pipeline_factory.builds) == 2
        assert classifier.loaded_model == ModelSize.FULL

    @pytest.mark.asyncio
    async def test_selection_change_during_load_discards_result(
        self, preference_store, pipeline_factory
    ):
        def slow_downloader(model_id, on_progress=None):
            time.sleep(0.2)

        classifier = PestClassifier(
            preference_store,
            pipeline_factory=pipeline_factory,
            downloader=slow_downloader,
        )

        load = asyncio.create_task(classifier.ensure_model_loaded())
        await asyncio.sleep(0.05)
        classifier.select_model_variant(ModelSize.FULL)

        assert await load is False
        assert classifier.state == PipelineState.UNLOADED
        assert classifier.loaded_model is None
        assert classifier.is_ready() is False
        assert preference_store.is_model_cached() is False

        assert await classifier.ensure_model_loaded() is True
        assert classifier.loaded_model == ModelSize.FULL
        assert preference_store.is_model_cached() is True

    @pytest.mark.asyncio
    async def test_download_and_cache_model(self, classifier, preference_store):
        assert await classifier.download_and_cache_model() is True
        assert preference_store.is_model_cached() is True


@pytest.mark.unit
class TestClassify:
    """Test suite for classification and verdicts."""

    @pytest.mark.asyncio
    async def test_classify_caterpillar(self, classifier, fake_pipeline):
        statuses = []

        result = await classifier.classify(
            Image.new("RGB", (2000, 1000)), on_status=statuses.append
        )

        assert result.is_pest is True
        assert "caterpillar" in result.pest_types
        assert "leaf beetle" in result.pest_types
        assert FALL_ARMYWORM_SENTINEL in result.pest_types
        assert result.confidence == pytest.approx(85.0)
        assert result.infestation_level == InfestationLevel.CRITICAL
        assert result.processing_time_ms >= 0
        assert statuses[0] == "Loading AI model..."

        call = fake_pipeline.calls[0]
        assert call["size"] == (512, 256)
        assert call["mode"] == "RGB"
        assert call["top_k"] == 10

    @pytest.mark.asyncio
    async def test_classify_clean_leaf(self, classifier, fake_pipeline):
        fake_pipeline.results = [
            {"label": "corn", "score": 0.25},
            {"label": "broccoli", "score": 0.1},
        ]

        result = await classifier.classify(Image.new("RGB", (100, 100)))

        assert result.is_pest is False
        assert result.pest_types == []
        assert result.infestation_level == InfestationLevel.NONE

    @pytest.mark.asyncio
    async def test_classify_keeps_at_most_ten_labels(self, classifier, fake_pipeline):
        fake_pipeline.results = [
            {"label": f"label {index}", "score": 0.01} for index in range(20)
        ]

        result = await classifier.classify(Image.new("RGB", (10, 10)))

        assert len(result.labels) == 10

    @pytest.mark.asyncio
    async def test_selection_change_during_classify_keeps_loaded_model(
        self, classifier, fake_pipeline, monkeypatch
    ):
        original_prepare = pest_classifier.prepare_for_inference

        def slow_prepare(image):
            time.sleep(0.2)
            return original_prepare(image)

        monkeypatch.setattr(pest_classifier, "prepare_for_inference", slow_prepare)
        await classifier.ensure_model_loaded()

        scan = asyncio.create_task(classifier.classify(Image.new("RGB", (64, 64))))
        await asyncio.sleep(0.05)
        classifier.select_model_variant(ModelSize.SMALL)

        result = await scan

        assert result.is_pest is True
        assert len(fake_pipeline.calls) == 1
        assert classifier.is_ready() is False

    @pytest.mark.asyncio
    async def test_classify_raises_when_model_unavailable(
        self, classifier, pipeline_factory, fake_pipeline
    ):
        pipeline_factory.fail_devices = {
            InferenceDevice.ACCELERATED,
            InferenceDevice.PORTABLE,
        }

        with pytest.raises(ModelLoadError):
            await classifier.classify(Image.new("RGB", (10, 10)))
        assert fake_pipeline.calls == []


@pytest.mark.unit
class TestClassifierStatus:
    def test_model_options(self):
        options = list_model_options()

        assert [option.size for option in options] == [
            ModelSize.TINY,
            ModelSize.SMALL,
            ModelSize.MEDIUM,
            ModelSize.FULL,
        ]

    def test_acceleration_probe_never_raises(self, preference_store):
        def broken_probe():
            raise RuntimeError("no driver")

        classifier = PestClassifier(preference_store, acceleration_probe=broken_probe)

        assert classifier.detect_acceleration_support() is False

    @pytest.mark.asyncio
    async def test_status_reports_loaded_model(self, classifier):
        await classifier.ensure_model_loaded()

        status = classifier.get_status()

        assert status.state == PipelineState.READY
        assert status.loaded is True
        assert status.cached is True
        assert status.selected == ModelSize.TINY
