"""
Products module - Purchasable software products.

This module handles:
- Product entity and publication status
- Artifact (download) location
"""
