"""Service layer: capture pipeline, local inference pipeline and logging."""
