"""
Licenses module - License seats and device binding storage.

This module handles:
- License entity and key generation
- License store (seats, bound and free slots)
- Claim by email and device release
"""
