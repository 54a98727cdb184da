"""Tests for command-line helpers."""
from __future__ import annotations

from scripts import sync_data, token_manager


def test_sync_window_arguments():
    assert sync_data.resolve_days(sync_data.parse_args([]), 90) == 90
    assert sync_data.resolve_days(sync_data.parse_args(["--days", "30"]), 90) == 30
    assert sync_data.resolve_days(sync_data.parse_args(["--weeks", "2"]), 90) == 14


def test_token_manager_arguments():
    args = token_manager.parse_args(["bootstrap", "oura", "--access-token", "abc", "--expires-in", "3600"])

    assert args.command == "bootstrap"
    assert args.provider == "oura"
    assert args.access_token == "abc"
    assert args.expires_in == 3600
    assert token_manager.parse_args(["refresh"]).provider is None
