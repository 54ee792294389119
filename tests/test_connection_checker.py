"""Tests for connection checker steps and summary helpers."""
import asyncio

import pytest

from ftpferry.services.connection_checker import CheckResult, ConnectionChecker
from ftpferry.shared.errors import AuthenticationError, PathNotFoundError
from ftpferry.shared.models import RemoteEntry


def _tcp_ok(checker: ConnectionChecker, monkeypatch) -> None:
    async def passed():
        return CheckResult(name="TCP Connection", passed=True, message="ok")

    monkeypatch.setattr(checker, "_check_tcp", passed)


@pytest.fixture
def checker(site, factory) -> ConnectionChecker:
    return ConnectionChecker(site, client_factory=factory)


def test_get_summary_uses_ascii_status_labels(checker):
    checker.results = [
        CheckResult(name="TCP Connection", passed=True, message="ok"),
        CheckResult(name="Login", passed=False, message="auth failed"),
    ]

    summary = checker.get_summary()

    assert "PASS TCP Connection: ok" in summary
    assert "FAIL Login: auth failed" in summary


def test_all_passed_matches_results(checker):
    assert checker.all_passed() is False

    checker.results = [
        CheckResult(name="a", passed=True, message="ok"),
        CheckResult(name="b", passed=True, message="ok"),
    ]
    assert checker.all_passed() is True

    checker.results.append(CheckResult(name="c", passed=False, message="bad"))
    assert checker.all_passed() is False


def test_all_checks_pass(checker, factory, monkeypatch):
    _tcp_ok(checker, monkeypatch)
    factory.configure = lambda client: client.entries.update(
        {"/": [RemoteEntry(name="pub", path="/pub", is_dir=True)]}
    )

    results = asyncio.run(checker.run_all_checks())

    assert [r.name for r in results] == ["TCP Connection", "Login", "Directory Listing"]
    assert checker.all_passed() is True
    assert "1 entries" in results[-1].message
    assert factory.last.closed is True


def test_login_failure_stops_checks(checker, factory, monkeypatch):
    _tcp_ok(checker, monkeypatch)
    factory.configure = lambda client: setattr(
        client, "connect_error", AuthenticationError("530 Login incorrect")
    )

    results = asyncio.run(checker.run_all_checks())

    assert [r.passed for r in results] == [True, False]
    assert "530 Login incorrect" in results[-1].message
    assert factory.last.closed is True


def test_listing_failure_reported(checker, factory, monkeypatch):
    _tcp_ok(checker, monkeypatch)
    factory.configure = lambda client: client.errors.update(
        {"list_dir": PathNotFoundError("Path not found: /data")}
    )

    results = asyncio.run(checker.run_all_checks("/data"))

    assert results[-1].passed is False
    assert results[-1].name == "Directory Listing"


def test_tcp_failure_skips_login(checker, factory, monkeypatch):
    async def failed():
        return CheckResult(name="TCP Connection", passed=False, message="refused")

    monkeypatch.setattr(checker, "_check_tcp", failed)

    results = asyncio.run(checker.run_all_checks())

    assert len(results) == 1
    assert factory.clients == []
