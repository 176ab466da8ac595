"""Test fixtures for daytrack-server."""

from tests.fixtures.activity_seed import seed_activity_history
from tests.fixtures.owners import MASTER_KEY, OWNER_A, OWNER_B, auth_headers

__all__ = ["MASTER_KEY", "OWNER_A", "OWNER_B", "auth_headers", "seed_activity_history"]
