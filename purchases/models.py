"""
Model registration for the purchases app.
"""
from purchases.infrastructure.models import Purchase  # noqa: F401
