# backend/pestscan/dependencies.py
"""
Dependency Injection for FarmCare PestScan.

The capture orchestrator (with its camera session) and the pest classifier
are process-wide singletons held in a ServiceRegistry. Tests replace them
through `app.dependency_overrides`.
"""

from threading import Lock
from typing import Annotated, Any, Callable, Dict

from fastapi import Depends

from .services.capture_pipeline import CaptureOrchestrator, create_capture_pipeline
from .services.inference_pipeline import PestClassifier, create_pest_classifier

CAPTURE_PIPELINE = "capture_pipeline"
PEST_CLASSIFIER = "pest_classifier"


class ServiceRegistry:
    """
    Thread-safe singleton service registry.

    Services are created lazily by their registered factory on first use.
    """

    def __init__(self) -> None:
        self._services: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._lock = Lock()

    def register_factory(self, service_name: str, factory: Callable[[], Any]) -> None:
        with self._lock:
            self._factories[service_name] = factory

    def get_service(self, service_name: str) -> Any:
        """
        Get a service instance, creating it if necessary.

        Raises:
            KeyError: If no factory is registered for the service
        """
        with self._lock:
            if service_name in self._services:
                return self._services[service_name]

            if service_name not in self._factories:
                raise KeyError(f"No factory registered for service: {service_name}")

            instance = self._factories[service_name]()
            self._services[service_name] = instance
            return instance

    def peek_service(self, service_name: str) -> Any:
        """Existing instance or None; never creates one."""
        with self._lock:
            return self._services.get(service_name)

    def clear_all_services(self) -> None:
        with self._lock:
            self._services.clear()


registry = ServiceRegistry()
registry.register_factory(CAPTURE_PIPELINE, create_capture_pipeline)
registry.register_factory(PEST_CLASSIFIER, create_pest_classifier)


def get_capture_orchestrator() -> CaptureOrchestrator:
    return registry.get_service(CAPTURE_PIPELINE)


def get_pest_classifier() -> PestClassifier:
    return registry.get_service(PEST_CLASSIFIER)


CaptureOrchestratorDep = Annotated[CaptureOrchestrator, Depends(get_capture_orchestrator)]
PestClassifierDep = Annotated[PestClassifier, Depends(get_pest_classifier)]
