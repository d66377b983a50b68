"""Тесты ThreadSafeSessionManager."""

import threading

import requests

from fluent_http.core.session_manager import ThreadSafeSessionManager


def test_same_thread_reuses_session():
    manager = ThreadSafeSessionManager(requests.Session)
    assert manager.get_session() is manager.get_session()
    assert manager.get_active_sessions_count() == 1
    manager.close_all()


def test_each_thread_gets_own_session():
    manager = ThreadSafeSessionManager(requests.Session)
    sessions = []
    barrier = threading.Barrier(3)

    def worker():
        sessions.append(manager.get_session())
        barrier.wait()

    threads = [threading.Thread(target=worker) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({id(s) for s in sessions}) == 3
    assert manager.get_active_sessions_count() == 3
    manager.close_all()
    assert manager.get_active_sessions_count() == 0


def test_close_all_idempotent():
    manager = ThreadSafeSessionManager(requests.Session)
    first = manager.get_session()
    manager.close_all()
    manager.close_all()
    assert manager.get_session() is not first
