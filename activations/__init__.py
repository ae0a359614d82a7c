"""
Activations module - Device activation and verification.

This module handles:
- Activation log (one entry per attempt)
- Quota and slot allocation for device binding
- Activate and verify use cases
"""
