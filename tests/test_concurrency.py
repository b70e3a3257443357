"""
SnackSpot Auckland - Concurrent Rotation Tests

Two clients racing to rotate the same refresh token must produce exactly
one success. Runs against a file-backed SQLite database so each thread
gets its own connection.

Run with: pytest tests/test_concurrency.py -v
"""

import threading

import pytest

from snackspot.auth.database import get_engine, init_db, get_session_factory
from snackspot.auth.errors import AuthError
from snackspot.auth.service import AuthManager


@pytest.fixture
def file_manager(tmp_path, test_config):
    engine = get_engine(f"sqlite:///{tmp_path / 'race.db'}")
    init_db(engine)
    yield AuthManager(test_config, get_session_factory(engine))
    engine.dispose()


def _race(manager: AuthManager, token: str, workers: int = 2):
    barrier = threading.Barrier(workers)
    results = []
    errors = []
    lock = threading.Lock()

    def rotate():
        barrier.wait()
        try:
            result = manager.rotate_refresh_token(token)
        except Exception as e:  # surfaced by the assertion below
            with lock:
                errors.append(e)
            return
        with lock:
            results.append(result)

    threads = [threading.Thread(target=rotate) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    return results


class TestConcurrentRotation:
    """At-most-one-winner semantics for rotation."""

    @pytest.mark.parametrize("round_", range(5))
    def test_two_concurrent_rotations_one_winner(self, file_manager, round_):
        user = file_manager.register(f"racer{round_}", f"racer{round_}@example.com", "secret1").user
        r1 = file_manager.issue_refresh_token(user)

        results = _race(file_manager, r1)

        assert len(results) == 2
        winners = [r for r in results if r.success]
        losers = [r for r in results if not r.success]
        assert len(winners) == 1
        assert len(losers) == 1
        assert losers[0].error == AuthError.INVALID_OR_EXPIRED_TOKEN

        # The winner's replacement is usable; the original is spent
        assert file_manager.rotate_refresh_token(winners[0].refresh_token).success
        assert not file_manager.rotate_refresh_token(r1).success

    def test_many_concurrent_rotations_one_winner(self, file_manager):
        user = file_manager.register("crowd", "crowd@example.com", "secret1").user
        r1 = file_manager.issue_refresh_token(user)

        results = _race(file_manager, r1, workers=8)

        assert sum(1 for r in results if r.success) == 1
        assert len(file_manager.list_active_tokens(user.id)) == 1
