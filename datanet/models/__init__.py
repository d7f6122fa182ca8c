"""Data models: entities, consent, provenance and scrub audit."""
