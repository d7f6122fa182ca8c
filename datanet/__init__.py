"""Data network contribution pipeline.

Contributes consent-gated, PII-scrubbed copies of tenant entities to a
shared cross-tenant analytics store.
"""
