"""HTTP service mode for h5pcare."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
