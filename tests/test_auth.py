import asyncio
import unittest
from datetime import timedelta

from support import make_database

from waleki.core.exceptions import ConflictError, ValidationError
from waleki.core.timeutils import utcnow
from waleki.crud.users import create_user
from waleki.services.auth import (
    InMemorySessionStore, SessionSweeper, UserSession,
    hash_password, verify_password, create_session, authenticate_user
)

class TestPasswords(unittest.TestCase):

    def test_hash_and_verify(self):
        hashed = hash_password("secret")

        self.assertNotEqual(hashed, "secret")
        self.assertTrue(verify_password("secret", hashed))
        self.assertFalse(verify_password("other", hashed))

    def test_unreadable_hash_does_not_verify(self):
        self.assertFalse(verify_password("secret", "not-a-bcrypt-hash"))

class TestSessionStore(unittest.TestCase):
    """Test cases for session expiry and sweeping"""

    def setUp(self):
        self.store = InMemorySessionStore()
        self.now = utcnow()

    def _session(self, hours):
        return UserSession(user_id=1, role="user", expires_at=self.now + timedelta(hours=hours))

    def test_expired_session_is_not_returned(self):
        self.store.set("live", self._session(1))
        self.store.set("dead", self._session(-1))

        self.assertEqual(self.store.get("live").user_id, 1)
        self.assertIsNone(self.store.get("dead"))
        self.assertEqual(len(self.store), 1)

    def test_purge_expired(self):
        self.store.set("a", self._session(1))
        self.store.set("b", self._session(3))

        self.assertEqual(self.store.purge_expired(self.now + timedelta(hours=2)), 1)
        self.assertIsNone(self.store.get("a"))
        self.assertIsNotNone(self.store.get("b"))

    def test_delete_is_idempotent(self):
        self.store.set("a", self._session(1))
        self.store.delete("a")
        self.store.delete("a")
        self.assertIsNone(self.store.get("a"))

    def test_delete_for_user_ends_all_their_sessions(self):
        self.store.set("a", self._session(1))
        self.store.set("b", self._session(2))
        self.store.set("c", UserSession(user_id=2, role="admin", expires_at=self.now + timedelta(hours=1)))

        self.assertEqual(self.store.delete_for_user(1), 2)
        self.assertIsNone(self.store.get("a"))
        self.assertEqual(self.store.get("c").user_id, 2)

    def test_sweeper_sweep_once(self):
        sweeper = SessionSweeper(self.store, interval=60)
        self.store.set("a", self._session(1))

        self.assertEqual(sweeper.sweep_once(self.now), 0)
        self.assertEqual(sweeper.sweep_once(self.now + timedelta(hours=25)), 1)
        self.assertEqual(len(self.store), 0)

    def test_sweeper_loop_removes_expired_sessions(self):
        self.store.set("dead", self._session(-1))
        sweeper = SessionSweeper(self.store, interval=0.01)

        async def run():
            sweeper.start()
            await asyncio.sleep(0.05)
            await sweeper.stop()

        asyncio.run(run())

        self.assertEqual(len(self.store), 0)
        self.assertFalse(sweeper.running)

class TestUsers(unittest.TestCase):
    """Test cases for accounts and login sessions"""

    def setUp(self):
        self.engine, SessionTesting = make_database()
        self.db = SessionTesting()
        self.store = InMemorySessionStore()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_create_and_authenticate(self):
        user = create_user(self.db, "alice", "alice@example.com", "pw123", role="admin")

        self.assertEqual(authenticate_user(self.db, "alice", "pw123").id, user.id)
        self.assertIsNone(authenticate_user(self.db, "alice", "wrong"))
        self.assertIsNone(authenticate_user(self.db, "bob", "pw123"))

    def test_duplicates_conflict(self):
        create_user(self.db, "alice", "alice@example.com", "pw123")

        with self.assertRaises(ConflictError):
            create_user(self.db, "alice", "other@example.com", "pw123")
        with self.assertRaises(ConflictError):
            create_user(self.db, "other", "alice@example.com", "pw123")

    def test_invalid_user_input(self):
        with self.assertRaises(ValidationError):
            create_user(self.db, "", "a@example.com", "pw")
        with self.assertRaises(ValidationError):
            create_user(self.db, "a", "a@example.com", "pw", role="root")

    def test_session_resolves_to_user_and_role(self):
        user = create_user(self.db, "alice", "alice@example.com", "pw123")

        token = create_session(user, self.store, ttl_hours=1)
        session = self.store.get(token)

        self.assertEqual((session.user_id, session.role), (user.id, "user"))
        self.assertNotEqual(create_session(user, self.store), token)

if __name__ == '__main__':
    unittest.main()
