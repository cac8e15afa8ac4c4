import unittest

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fridgevision_backend.models import Base, StoredValue
from fridgevision_backend.models.domain import Recipe
from fridgevision_backend.services.profile_store import ProfileStore
from fridgevision_backend.services.storage import (
    InMemoryKeyValueStore,
    SqlKeyValueStore,
    UnavailableKeyValueStore,
    init_key_value_store,
)


def _session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class _FailingSession:
    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def get(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class SqlKeyValueStoreTests(unittest.TestCase):
    def setUp(self):
        self.session_factory = _session_factory()
        self.store = SqlKeyValueStore(self.session_factory)

    def test_set_get_overwrite_remove(self):
        self.assertIsNone(self.store.get("fridgevision_settings"))

        self.store.set("fridgevision_settings", '{"visionModel": "a"}')
        self.store.set("fridgevision_settings", '{"visionModel": "b"}')

        self.assertEqual(self.store.get("fridgevision_settings"), '{"visionModel": "b"}')
        with self.session_factory() as session:
            self.assertEqual(session.query(StoredValue).count(), 1)

        self.store.remove("fridgevision_settings")
        self.store.remove("fridgevision_settings")

        self.assertIsNone(self.store.get("fridgevision_settings"))

    def test_profile_buckets_survive_a_new_store_instance(self):
        ProfileStore(self.store).add_to_history(
            Recipe(
                id="r1",
                title="Soup",
                ingredients=["1 carrot"],
                steps=["Boil"],
                source="gemini-2.5-flash",
                created_at="2024-01-01T00:00:00+00:00",
            )
        )

        reopened = ProfileStore(SqlKeyValueStore(self.session_factory))

        self.assertEqual([entry.id for entry in reopened.get_history()], ["r1"])

    def test_database_errors_degrade_instead_of_raising(self):
        sessions = []

        def factory():
            session = _FailingSession()
            sessions.append(session)
            return session

        store = SqlKeyValueStore(factory)

        with self.assertLogs("fridgevision_backend.services.storage", level="ERROR"):
            self.assertIsNone(store.get("k"))
            store.set("k", "v")
            store.remove("k")

        self.assertTrue(all(session.closed for session in sessions))
        self.assertTrue(sessions[1].rolled_back)
        self.assertTrue(sessions[2].rolled_back)


class InitKeyValueStoreTests(unittest.TestCase):
    def test_kinds(self):
        self.assertIsInstance(init_key_value_store("memory"), InMemoryKeyValueStore)
        self.assertIsInstance(init_key_value_store("none"), UnavailableKeyValueStore)
        self.assertIsInstance(
            init_key_value_store("database", session_factory=_session_factory()),
            SqlKeyValueStore,
        )

    def test_database_without_session_factory(self):
        with self.assertRaises(RuntimeError):
            init_key_value_store("database")

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            init_key_value_store("redis")


if __name__ == "__main__":
    unittest.main()
