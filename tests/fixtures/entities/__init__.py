"""Test entity fixtures."""

from tests.fixtures.entities.sample_entities import (
    TEST_SALT,
    make_client_entity,
    make_consent,
    make_scrubbed_entity,
    make_transaction_entity,
)

__all__ = [
    "TEST_SALT",
    "make_client_entity",
    "make_consent",
    "make_scrubbed_entity",
    "make_transaction_entity",
]
