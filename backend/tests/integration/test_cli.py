"""Tests for the ``flask sessions`` command group."""

from __future__ import annotations

BASE = "/api/v1/auth"
ALICE = {
    "username": "alice",
    "name": "Alice",
    "email": "alice@example.com",
    "password": "Secr3t!pw",
    "confirmPassword": "Secr3t!pw",
}


def test_init_db(runner):
    result = runner.invoke(args=["sessions", "init-db"])
    assert result.exit_code == 0
    assert "Database tables created." in result.output


def test_revoke_forces_logout(client, runner):
    client.post(f"{BASE}/register", json=ALICE)

    result = runner.invoke(args=["sessions", "revoke", "alice"])
    assert result.exit_code == 0
    assert "Session of alice revoked." in result.output

    assert client.post(f"{BASE}/refresh").status_code == 401

    again = runner.invoke(args=["sessions", "revoke", "alice"])
    assert "alice had no active session." in again.output


def test_revoke_unknown_user(runner):
    result = runner.invoke(args=["sessions", "revoke", "ghost"])
    assert result.exit_code != 0
    assert "Unknown user: ghost" in result.output
