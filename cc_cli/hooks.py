"""settings.json 中 hooks 配置的读写辅助函数

hooks 的结构为 {事件名: [{matcher?, hooks: [{type: "command", command: str}]}]}，
通知和YOLO模式都通过在其中插入/移除命令条目来开关。
"""

from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigDirUnavailable, ConfigParseError
from .utils import dump_json_file, ensure_directory_exists, load_json_file


def read_settings(settings_path: Path) -> Dict[str, Any]:
    settings = load_json_file(settings_path, default={})
    if not isinstance(settings, dict):
        raise ConfigParseError(f"{settings_path} must contain a JSON object", path=settings_path)
    return settings


def write_settings(settings_path: Path, settings: Dict[str, Any]):
    try:
        ensure_directory_exists(settings_path.parent)
    except OSError as e:
        raise ConfigDirUnavailable(f"Failed to create {settings_path.parent}: {e}") from e
    dump_json_file(settings_path, settings)


def group_has_command(group: Any, marker: str, require_type: bool = True) -> bool:
    if not isinstance(group, dict) or not isinstance(group.get("hooks"), list):
        return False

    for hook in group["hooks"]:
        if not isinstance(hook, dict):
            continue
        if require_type and hook.get("type") != "command":
            continue
        command = hook.get("command")
        if isinstance(command, str) and marker in command:
            return True
    return False


def event_has_command(settings: Dict[str, Any], event: str, marker: str, require_type: bool = True) -> bool:
    hooks = settings.get("hooks")
    if not isinstance(hooks, dict) or not isinstance(hooks.get(event), list):
        return False
    return any(group_has_command(group, marker, require_type) for group in hooks[event])


def add_hook_command(settings: Dict[str, Any], event: str, command: str,
                     matcher: Optional[str] = None) -> bool:
    """在事件下追加一个命令hook组，已存在相同命令时跳过；返回是否追加"""
    hooks = settings.get("hooks")
    if not isinstance(hooks, dict):
        hooks = settings["hooks"] = {}
    if not isinstance(hooks.get(event), list):
        hooks[event] = []

    if event_has_command(settings, event, command, require_type=False):
        return False

    group: Dict[str, Any] = {}
    if matcher is not None:
        group["matcher"] = matcher
    group["hooks"] = [{"type": "command", "command": command}]
    hooks[event].append(group)
    return True


def remove_hook_commands(settings: Dict[str, Any], event: str, marker: str) -> int:
    """移除事件下所有包含 marker 命令的hook组，清理空列表和空的 hooks 节点；返回移除数量"""
    hooks = settings.get("hooks")
    if not isinstance(hooks, dict) or not isinstance(hooks.get(event), list):
        return 0

    kept = [group for group in hooks[event] if not group_has_command(group, marker)]
    removed = len(hooks[event]) - len(kept)

    if kept:
        hooks[event] = kept
    else:
        del hooks[event]

    if not hooks:
        del settings["hooks"]

    return removed
