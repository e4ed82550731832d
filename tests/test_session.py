"""
Tests for the admin session gate.
"""
import json

import pytest

from portal.session import (
    AdminSession, FileSessionBackend, InFlightGuard, MemorySessionBackend, SESSION_KEY,
)


@pytest.fixture
def session_file(tmp_path):
    return str(tmp_path / "state" / "admin_session.json")


def make_session(backend):
    return AdminSession(backend, email="admin@example.gov.in", password="s3cret")


class TestAdminSession:
    """Tests for login and logout."""

    def test_starts_signed_out(self):
        assert not make_session(MemorySessionBackend()).is_authenticated

    def test_correct_credentials(self):
        session = make_session(MemorySessionBackend())
        assert session.login("admin@example.gov.in", "s3cret")
        assert session.is_authenticated

    @pytest.mark.parametrize("email,password", [
        ("admin@example.gov.in", "wrong"),
        ("someone@example.gov.in", "s3cret"),
        ("", ""),
    ])
    def test_wrong_credentials(self, email, password):
        session = make_session(MemorySessionBackend())
        assert not session.login(email, password)
        assert not session.is_authenticated

    def test_logout_clears_flag(self):
        session = make_session(MemorySessionBackend())
        session.login("admin@example.gov.in", "s3cret")
        session.logout()
        assert not session.is_authenticated

    def test_defaults_to_configured_credentials(self, monkeypatch):
        monkeypatch.setattr("portal.session.ADMIN_EMAIL", "boss@example.gov.in")
        monkeypatch.setattr("portal.session.ADMIN_PASSWORD", "pw")
        session = AdminSession(MemorySessionBackend())
        assert session.login("boss@example.gov.in", "pw")


class TestFileSessionBackend:
    """Tests for the on-disk flag."""

    def test_survives_reload(self, session_file):
        make_session(FileSessionBackend(session_file)).login("admin@example.gov.in", "s3cret")

        reloaded = make_session(FileSessionBackend(session_file))
        assert reloaded.is_authenticated
        with open(session_file, encoding="utf-8") as f:
            assert json.load(f) == {SESSION_KEY: True}

    def test_logout_removes_file(self, session_file):
        session = make_session(FileSessionBackend(session_file))
        session.login("admin@example.gov.in", "s3cret")
        session.logout()
        assert not make_session(FileSessionBackend(session_file)).is_authenticated

    def test_missing_file_means_signed_out(self, session_file):
        assert FileSessionBackend(session_file).load() is False

    def test_corrupt_file_means_signed_out(self, tmp_path):
        path = tmp_path / "admin_session.json"
        path.write_text("{not json", encoding="utf-8")
        assert FileSessionBackend(str(path)).load() is False

    def test_only_true_counts(self, tmp_path):
        path = tmp_path / "admin_session.json"
        path.write_text(json.dumps({SESSION_KEY: "true"}), encoding="utf-8")
        assert FileSessionBackend(str(path)).load() is False


class TestInFlightGuard:
    """Tests for the one-request-at-a-time action guard."""

    def test_idle_by_default(self):
        guard = InFlightGuard({}, "status_update")
        assert not guard.busy
        assert guard.request is None

    def test_start_marks_busy_and_keeps_request(self):
        state = {}
        guard = InFlightGuard(state, "status_update")
        assert guard.start(("app-1", "approved", None))
        assert guard.busy
        assert guard.request == ("app-1", "approved", None)
        assert state["status_update_in_flight"] is True

    def test_second_start_is_refused_while_busy(self):
        guard = InFlightGuard({}, "status_update")
        guard.start(("app-1", "approved", None))
        assert not guard.start(("app-2", "approved", None))
        assert guard.request == ("app-1", "approved", None)

    def test_finish_releases_and_keeps_error_once(self):
        guard = InFlightGuard({}, "application")
        guard.start()
        guard.finish("Full name is required.")
        assert not guard.busy
        assert guard.request is None
        assert guard.pop_error() == "Full name is required."
        assert guard.pop_error() is None

    def test_start_clears_previous_error(self):
        guard = InFlightGuard({}, "application")
        guard.start()
        guard.finish("Failed to submit application. Please try again.")
        guard.start()
        assert guard.pop_error() is None

    def test_guards_are_independent(self):
        state = {}
        InFlightGuard(state, "application").start()
        assert not InFlightGuard(state, "item").busy

    def test_reset(self):
        state = {}
        guard = InFlightGuard(state, "status_update")
        guard.start(("app-1", "rejected", "Incomplete info"))
        guard.reset()
        assert state == {}
