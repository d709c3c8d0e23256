from __future__ import annotations

import pytest

from mdtsync.cli import error_envelope, parse_variables, success_envelope


def test_success_envelope_shape() -> None:
    envelope = success_envelope("run-abc", {"is_ok": True}, ["warning: x"])

    assert envelope == {
        "run_id": "run-abc",
        "ok": True,
        "result": {"is_ok": True},
        "warnings": ["warning: x"],
    }


def test_error_envelope_shape() -> None:
    envelope = error_envelope("run-abc", "CONFIG_INVALID", "bad config")

    assert envelope["ok"] is False
    assert envelope["result"] == {}
    assert envelope["error"] == {"code": "CONFIG_INVALID", "message": "bad config"}


def test_parse_variables() -> None:
    assert parse_variables(["name=mdt", "empty=", "eq=a=b"]) == {
        "name": "mdt",
        "empty": "",
        "eq": "a=b",
    }
    with pytest.raises(ValueError, match="NAME=VALUE"):
        parse_variables(["novalue"])
