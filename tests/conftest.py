import json

import pytest


@pytest.fixture()
def temp_home(tmp_path, monkeypatch):
    """Put the user's home directory (and so ~/.claude and ~/.cc-cli) in a temp location."""
    import platform

    home_dir = tmp_path / "home"
    home_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))

    # For Windows, also patch Path.home() to return our temp home
    if platform.system() == "Windows":
        from pathlib import Path
        monkeypatch.setattr(Path, "home", lambda: home_dir)

    return home_dir


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


def make_site(token="sk-test", base_url="https://api.example.com", field="claude", **env):
    env_block = {"ANTHROPIC_AUTH_TOKEN": token}
    if base_url is not None:
        env_block["ANTHROPIC_BASE_URL"] = base_url
    env_block.update(env)
    return {"url": "https://example.com", field: {"env": env_block}}


@pytest.fixture()
def write_store(temp_home):
    """Write an api_configs.json under ~/.cc-cli (or ~/.claude with legacy=True)."""
    def _write(data, legacy=False):
        directory = ".claude" if legacy else ".cc-cli"
        return write_json(temp_home / directory / "api_configs.json", data)

    return _write
