import json

import yaml
from click.testing import CliRunner

from cc_cli.cli import cli, redact_store
from conftest import make_site, read_json, write_json


def _store():
    return {
        "sites": {
            "relay": make_site(token={"Primary": "sk-primary-123456", "Backup": "sk-backup-654321"}),
            "single": make_site(token="sk-single-abcdef", base_url="https://single.example.com"),
        }
    }


def test_list_without_store_explains_setup(temp_home):
    runner = CliRunner()
    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 1
    assert "API config file not found" in result.output
    assert "api_configs.json" in result.output


def test_list_shows_sites_and_current(write_store):
    write_store(_store())
    runner = CliRunner()

    assert runner.invoke(cli, ["use", "single"]).exit_code == 0
    result = runner.invoke(cli, ["list"])

    assert result.exit_code == 0, result.output
    assert "* single" in result.output
    assert "  relay" in result.output
    assert "Primary, Backup" in result.output


def test_use_single_token_site(temp_home, write_store):
    write_store(_store())
    runner = CliRunner()

    result = runner.invoke(cli, ["use", "single"])

    assert result.exit_code == 0, result.output
    assert "Switched to site 'single'" in result.output
    settings = read_json(temp_home / ".claude" / "settings.json")
    assert settings["env"]["ANTHROPIC_AUTH_TOKEN"] == "sk-single-abcdef"
    assert settings["env"]["ANTHROPIC_BASE_URL"] == "https://single.example.com"


def test_use_by_token_name(temp_home, write_store):
    write_store(_store())
    runner = CliRunner()

    result = runner.invoke(cli, ["use", "relay", "--token", "Backup"])

    assert result.exit_code == 0, result.output
    assert "Token: Backup" in result.output
    settings = read_json(temp_home / ".claude" / "settings.json")
    assert settings["env"]["ANTHROPIC_AUTH_TOKEN"] == "sk-backup-654321"


def test_use_with_raw_token_value(temp_home, write_store):
    write_store(_store())
    runner = CliRunner()

    result = runner.invoke(cli, ["use", "relay", "-t", "sk-manual-000000"])

    assert result.exit_code == 0, result.output
    assert "Token: custom" in result.output
    current = read_json(temp_home / ".cc-cli" / "api_configs.json")["currentConfig"]
    assert current["token"] == "sk-manual-000000"
    assert "tokenName" not in current


def test_use_prompts_for_multi_token(temp_home, write_store):
    write_store(_store())
    runner = CliRunner()

    result = runner.invoke(cli, ["use", "relay"], input="Backup\n")

    assert result.exit_code == 0, result.output
    settings = read_json(temp_home / ".claude" / "settings.json")
    assert settings["env"]["ANTHROPIC_AUTH_TOKEN"] == "sk-backup-654321"


def test_use_unknown_site(write_store):
    write_store(_store())
    result = CliRunner().invoke(cli, ["use", "nope"])
    assert result.exit_code == 1
    assert "Site 'nope' not found" in result.output


def test_use_broken_site_reports_switch_failure(write_store):
    write_store({"sites": {"broken": {"url": "https://x"}}})
    result = CliRunner().invoke(cli, ["use", "broken", "-t", "sk-x"])
    assert result.exit_code == 1
    assert "Failed to switch config" in result.output


def test_current_masks_token(write_store):
    write_store(_store())
    runner = CliRunner()
    runner.invoke(cli, ["use", "relay", "-t", "Primary"])

    result = runner.invoke(cli, ["current"])

    assert result.exit_code == 0, result.output
    assert "Claude: relay - Primary" in result.output
    assert "sk-primary-123456" not in result.output


def test_current_without_selection(write_store):
    write_store(_store())
    result = CliRunner().invoke(cli, ["current"])
    assert result.exit_code == 0
    assert "No current config" in result.output


def test_validate_reports_problems(write_store):
    store = _store()
    store["sites"]["bad"] = make_site(base_url=None)
    write_store(store)

    result = CliRunner().invoke(cli, ["validate"])

    assert result.exit_code == 1
    assert "Site 'bad'" in result.output


def test_validate_ok(write_store):
    write_store(_store())
    result = CliRunner().invoke(cli, ["validate"])
    assert result.exit_code == 0, result.output
    assert "is valid (2 sites)" in result.output


def test_info_lists_paths(temp_home):
    result = CliRunner().invoke(cli, ["info"])
    assert result.exit_code == 0
    assert str(temp_home / ".claude" / "settings.json") in result.output


def test_export_redacts_tokens_by_default(write_store):
    write_store(_store())

    result = CliRunner().invoke(cli, ["export"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["sites"]["relay"]["claude"]["env"]["ANTHROPIC_AUTH_TOKEN"] == {
        "Primary": "***REDACTED***",
        "Backup": "***REDACTED***",
    }
    assert data["sites"]["single"]["claude"]["env"]["ANTHROPIC_AUTH_TOKEN"] == "***REDACTED***"


def test_export_yaml_to_file(write_store, tmp_path):
    write_store(_store())
    output = tmp_path / "sites.yaml"

    result = CliRunner().invoke(cli, ["export", "--format", "yaml", "-o", str(output)])

    assert result.exit_code == 0, result.output
    data = yaml.safe_load(output.read_text(encoding="utf-8"))
    assert set(data["sites"]) == {"relay", "single"}


def test_redact_store_leaves_original_untouched():
    store = _store()
    store["currentConfig"] = {"site": "single", "token": "sk-single-abcdef"}

    redacted = redact_store(store)

    assert redacted["currentConfig"]["token"] == "***REDACTED***"
    assert store["currentConfig"]["token"] == "sk-single-abcdef"


def test_notify_toggle_and_status(temp_home):
    runner = CliRunner()

    result = runner.invoke(cli, ["notify"])
    assert result.exit_code == 0, result.output
    assert "Notifications enabled" in result.output
    assert "Notifications: on" in runner.invoke(cli, ["notify", "--status"]).output

    result = runner.invoke(cli, ["notify"])
    assert "Notifications disabled" in result.output
    assert "hooks" not in read_json(temp_home / ".claude" / "settings.json")


def test_yolo_toggle_and_status(temp_home):
    runner = CliRunner()

    assert "YOLO mode enabled" in runner.invoke(cli, ["yolo"]).output
    assert "YOLO mode: on" in runner.invoke(cli, ["yolo", "--status"]).output
    assert "YOLO mode disabled" in runner.invoke(cli, ["yolo"]).output


def test_notify_malformed_settings(temp_home):
    path = temp_home / ".claude" / "settings.json"
    path.parent.mkdir(parents=True)
    path.write_text("{nope", encoding="utf-8")

    result = CliRunner().invoke(cli, ["notify"])

    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_claude_yolo_hook_command(temp_home):
    runner = CliRunner()

    result = runner.invoke(cli, ["claude-yolo"], input=json.dumps({"tool_name": "Edit"}))
    assert result.exit_code == 0
    assert json.loads(result.output)["decision"] == "approve"

    result = runner.invoke(cli, ["claude-yolo"], input=json.dumps({"tool_name": "ExitPlanMode"}))
    assert result.exit_code == 0
    assert result.output == ""


def test_notify_hook_command(temp_home, monkeypatch):
    sent = []
    monkeypatch.setattr("cc_cli.cli.send_notification", lambda event_type: sent.append(event_type))

    result = CliRunner().invoke(cli, ["notify-hook", "notification"])

    assert result.exit_code == 0
    assert "✅" in result.output
    assert sent == ["notification"]


def test_settings_untouched_by_other_commands(temp_home, write_store):
    settings_path = write_json(temp_home / ".claude" / "settings.json", {"theme": "dark"})
    write_store(_store())

    CliRunner().invoke(cli, ["list"])
    CliRunner().invoke(cli, ["validate"])

    assert read_json(settings_path) == {"theme": "dark"}
