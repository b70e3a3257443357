"""
SnackSpot Auckland - Database Seed Script

Creates demo accounts for development through the auth manager, so
they get the same hashing and normalisation as real registrations.

Usage:
    python -m scripts.seed_users
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from snackspot.config import settings, AuthConfig
from snackspot.auth.database import get_engine, init_db, get_session_factory
from snackspot.auth.service import AuthManager


DEMO_USERS = [
    ("alice", "alice@snackspot.local", "Snack@2024"),
    ("bob", "bob@snackspot.local", "Snack@2024"),
]


def seed_demo_users():
    """Create demo accounts, skipping any that already exist."""
    engine = get_engine(settings.DATABASE_URL)
    init_db(engine)

    manager = AuthManager(AuthConfig.from_settings(settings), get_session_factory(engine))

    for username, email, password in DEMO_USERS:
        result = manager.register(username, email, password)
        if result.success:
            print(f"Created {username} ({email})")
        else:
            print(f"User {username} already exists.")

    engine.dispose()


if __name__ == "__main__":
    print("Seeding SnackSpot Auckland database...")
    seed_demo_users()
    print("\nDone!")
