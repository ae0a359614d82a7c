"""
Model registration for the activations app.
"""
from activations.infrastructure.models import ActivationLogEntry  # noqa: F401
