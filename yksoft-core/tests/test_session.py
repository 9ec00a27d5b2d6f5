"""
Token Session Tests
===================
Persist-before-display ordering, crash behaviour and concurrency.
"""

import multiprocessing
import os
import threading

import pytest

RFC4226_HOTP = ["755224", "287082", "359152", "969429", "338314", "254676"]


def _issue_many(directory, identifier, count, queue):
    from yksoft_core.session import TokenSession
    from yksoft_core.store import SecretStore

    session = TokenSession(SecretStore(directory))
    queue.put([session.issue(identifier).counter for _ in range(count)])


class TestNextCode:
    """Tests for the issuing sequence."""

    def test_first_code_uses_counter_one(self, session, rfc_token):
        """Enrollment stores counter 0; the first passcode is for counter 1."""
        assert session.next_code(rfc_token.identifier) == RFC4226_HOTP[1]

    def test_sequence_follows_reference_vectors(self, session, rfc_token):
        codes = [session.next_code(rfc_token.identifier) for _ in range(5)]

        assert codes == RFC4226_HOTP[1:6]

    def test_counter_increments_by_one(self, session, store, rfc_token):
        """Each call persists exactly one more than the previous value."""
        seen = []
        for _ in range(10):
            session.next_code(rfc_token.identifier)
            seen.append(store.load(rfc_token.identifier).moving_factor)

        assert seen == list(range(1, 11))

    def test_issue_reports_counter(self, session, rfc_token):
        issued = session.issue(rfc_token.identifier)

        assert issued.counter == 1
        assert issued.code == RFC4226_HOTP[1]
        assert str(issued) == RFC4226_HOTP[1]
        assert issued.code not in repr(issued)

    def test_digits_follow_record(self, session, store):
        from yksoft_core.store import TokenRecord

        store.create(TokenRecord(
            identifier="ddddeightdig",
            secret=b"12345678901234567890",
            moving_factor=0,
            label="eight",
            digits=8,
        ))

        assert session.next_code("ddddeightdig") == "94287082"

    def test_unknown_token(self, session):
        from yksoft_core.errors import NotFound

        with pytest.raises(NotFound):
            session.next_code("ddddnotthere")

    def test_session_holds_no_token_state(self, session, rfc_token):
        """Records and secrets are not cached on the session."""
        session.next_code(rfc_token.identifier)

        assert set(vars(session)) == {"store"}


class TestCrashSafety:
    """Simulated failures around the advance/generate boundary."""

    def test_crash_after_advance_never_reuses_counter(self, session, store, rfc_token, monkeypatch):
        """A crash between persisting and generating burns that counter."""
        from yksoft_core.session import token_session

        real_generate = token_session.engine.generate

        def crash(*args, **kwargs):
            raise RuntimeError("power loss")

        monkeypatch.setattr(token_session.engine, "generate", crash)
        with pytest.raises(RuntimeError):
            session.next_code(rfc_token.identifier)
        monkeypatch.setattr(token_session.engine, "generate", real_generate)

        assert store.load(rfc_token.identifier).moving_factor == 1

        issued = session.issue(rfc_token.identifier)
        assert issued.counter == 2
        assert issued.code == RFC4226_HOTP[2]

    def test_failed_persist_emits_nothing(self, session, store, rfc_token, monkeypatch):
        """No passcode is produced when the counter could not be stored."""
        from yksoft_core.errors import StorageIOFailure
        from yksoft_core.session import token_session
        import yksoft_core.store.secret_store as secret_store

        generated = []
        real_generate = token_session.engine.generate

        def spy(*args, **kwargs):
            generated.append(args)
            return real_generate(*args, **kwargs)

        def broken_replace(src, dst):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(token_session.engine, "generate", spy)
        monkeypatch.setattr(secret_store.os, "replace", broken_replace)

        with pytest.raises(StorageIOFailure):
            session.next_code(rfc_token.identifier)

        monkeypatch.undo()
        assert generated == []
        assert store.load(rfc_token.identifier).moving_factor == 0

    def test_restart_continues_from_stored_counter(self, store, token_dir, rfc_token):
        """A new process picks up where the last one stopped."""
        from yksoft_core.session import TokenSession
        from yksoft_core.store import SecretStore

        TokenSession(store).next_code(rfc_token.identifier)
        TokenSession(store).next_code(rfc_token.identifier)

        restarted = TokenSession(SecretStore(token_dir))

        assert restarted.issue(rfc_token.identifier).counter == 3


class TestConcurrency:
    """Concurrent callers sharing one store directory."""

    def test_threads_never_share_a_counter(self, store, token_dir, rfc_token):
        from yksoft_core.session import TokenSession
        from yksoft_core.store import SecretStore

        results = []
        lock = threading.Lock()

        def worker():
            session = TokenSession(SecretStore(token_dir))
            counters = [session.issue(rfc_token.identifier).counter for _ in range(20)]
            with lock:
                results.extend(counters)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(30)

        assert sorted(results) == list(range(1, 121))
        assert store.load(rfc_token.identifier).moving_factor == 120

    @pytest.mark.skipif(not hasattr(os, "fork"), reason="requires fork")
    def test_processes_never_share_a_counter(self, store, token_dir, rfc_token):
        ctx = multiprocessing.get_context("fork")
        queue = ctx.Queue()
        procs = [
            ctx.Process(target=_issue_many, args=(str(token_dir), rfc_token.identifier, 15, queue))
            for _ in range(4)
        ]
        for p in procs:
            p.start()

        results = []
        for _ in procs:
            results.extend(queue.get(timeout=60))
        for p in procs:
            p.join(30)

        assert sorted(results) == list(range(1, 61))
        assert store.load(rfc_token.identifier).moving_factor == 60
