"""
SQL session store example.

Shows:
1. Building a store on a shared SQLAlchemy engine
2. Draining the cleanup error channel from a worker thread
3. Session lifecycle: create, fetch, sign out other devices
"""

import logging
import threading

from sqlalchemy import create_engine

from sessionstore import DuplicateIDError, Session, SQLSessionStore

logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger("sessions-example")


def drain(store: SQLSessionStore):
    """Log sweep failures so the sweeper never stalls."""
    for error in store.cleanup_errors():
        logger.warning(f"Session sweep failed: {error}")


def main():
    engine = create_engine(
        "sqlite:///sessions.db",
        connect_args={"check_same_thread": False},
    )

    with SQLSessionStore(engine, table_name="sessions", cleanup_interval=60) as store:
        threading.Thread(target=drain, args=(store,), daemon=True).start()

        # 1. Sign in from two devices
        laptop = Session.create(
            user_key="alice",
            ttl=3600,
            ip="192.168.1.10",
            os="GNU/Linux",
            browser="Firefox",
            meta={"device": "laptop"},
        )
        phone = Session.create(user_key="alice", ttl=3600, meta={"device": "phone"})
        store.create(laptop)
        store.create(phone)

        # 2. IDs are unique
        try:
            store.create(laptop)
        except DuplicateIDError as e:
            print(f"Rejected: {e}")

        # 3. Look sessions up
        current = store.fetch_by_id(laptop.id)
        print(f"Laptop session: {current}")
        print(f"Alice has {len(store.fetch_by_user_key('alice'))} sessions")

        # 4. Sign out everywhere except the laptop
        store.delete_by_user_key("alice", laptop.id)
        print(f"Phone session after sign-out: {store.fetch_by_id(phone.id)}")

        store.delete_by_id(laptop.id)

    engine.dispose()


if __name__ == "__main__":
    main()
