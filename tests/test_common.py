import argparse
import json

import pytest

from zenctl.client import ZenctlError
from zenctl.common import (
    CliOpts,
    Target,
    add_target_arguments,
    confirm,
    emit,
    page_target,
    print_json,
    short_summary,
    target_from_args,
)


def test_confirm_dry_run_prints(capsys):
    confirm(CliOpts(dry_run=True), "remove bookmark", "abc")
    assert capsys.readouterr().out == "Would remove bookmark: abc\n"


def test_confirm_without_force_raises():
    with pytest.raises(ZenctlError) as info:
        confirm(CliOpts(), "close tab", "tab 7")
    message = str(info.value)
    assert message.startswith("Would close tab: tab 7")
    assert "Use --force to execute." in message


def test_confirm_with_force_is_silent(capsys):
    confirm(CliOpts(force=True), "delete folder", "f1")
    assert capsys.readouterr().out == ""


def test_page_target_defaults():
    params = page_target(Target())
    assert params["workspace"] is None
    assert params["target"]["active"] is False
    assert set(params["target"]) == {
        "tab_id", "window_id", "tab_index", "url_contains", "title_contains", "active",
    }
    assert all(params["target"][k] is None for k in params["target"] if k != "active")


def test_page_target_carries_values():
    target = Target(tab_id=42, url_contains="github", active=True, workspace="Work")
    params = page_target(target)
    assert params["target"]["tab_id"] == 42
    assert params["target"]["url_contains"] == "github"
    assert params["target"]["active"] is True
    assert params["workspace"] == "Work"


def test_short_summary_only_requested_keys():
    value = {"id": 42, "title": "Docs", "secret_field": "hidden"}
    text = short_summary(value, ["id", "title", "url"])
    assert "42" in text
    assert "Docs" in text
    assert "hidden" not in text
    assert "url" not in text


def test_short_summary_falls_back_to_json():
    value = {"other": [1, 2]}
    assert json.loads(short_summary(value, ["id"])) == value
    assert json.loads(short_summary([1, 2, 3], ["id"])) == [1, 2, 3]


def test_print_json_round_trip(capsys):
    value = {"a": [1, {"b": None}], "c": "zen"}
    print_json(value)
    assert json.loads(capsys.readouterr().out) == value


def test_emit_json_and_summary(capsys):
    value = {"tab_id": 5, "muted": True}
    emit(CliOpts(json=True), value, ["tab_id"])
    assert json.loads(capsys.readouterr().out) == value
    emit(CliOpts(), value, ["tab_id", "muted"])
    assert capsys.readouterr().out.strip() == short_summary(value, ["tab_id", "muted"])


def test_target_arguments_round_trip():
    parser = argparse.ArgumentParser()
    add_target_arguments(parser)
    args = parser.parse_args(
        ["--tab-id", "3", "--window-id", "9", "--title-contains", "News", "--active",
         "--workspace", "Home"]
    )
    target = target_from_args(args)
    assert target == Target(tab_id=3, window_id=9, title_contains="News", active=True,
                            workspace="Home")


def test_target_from_args_defaults():
    parser = argparse.ArgumentParser()
    add_target_arguments(parser)
    assert target_from_args(parser.parse_args([])) == Target()