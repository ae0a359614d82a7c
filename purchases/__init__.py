"""
Purchases module - Purchase ledger and payment completion.

This module handles:
- Purchase entity and canonical status mapping
- Hosted checkout and direct charge through the payment processor
- Webhook authentication
- Provisioning coordinator (status transitions and seat materialization)
- Guest account merge
"""
