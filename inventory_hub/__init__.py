"""Inventory event pipeline: audit ledger, approvals and notifications."""
