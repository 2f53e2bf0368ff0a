import json
import logging
import threading
from typing import Any, Dict, Optional, TextIO

from .config import ConfigPaths
from .errors import CCCliError
from .hooks import add_hook_command, event_has_command, read_settings, remove_hook_commands, write_settings

logger = logging.getLogger(__name__)

YOLO_EVENT = "PreToolUse"
YOLO_COMMAND = "cc-cli claude-yolo"
YOLO_MATCHER = ".*"
STDIN_TIMEOUT = 5.0

# 这些工具必须由用户手动确认
MANUAL_CONFIRM_TOOLS = {"ExitPlanMode"}


class YoloManager:
    """通过 settings.json 的 PreToolUse hook 开关 YOLO 模式（自动批准所有工具调用）"""

    def __init__(self, paths: Optional[ConfigPaths] = None):
        self.paths = paths or ConfigPaths.from_home()
        self.settings_path = self.paths.settings_path

    def check_status(self) -> bool:
        try:
            settings = read_settings(self.settings_path)
        except CCCliError as e:
            logger.debug("Treating YOLO mode as disabled: %s", e)
            return False
        return event_has_command(settings, YOLO_EVENT, YOLO_COMMAND)

    def toggle(self) -> bool:
        enabled = self.check_status()
        settings = read_settings(self.settings_path)

        if enabled:
            remove_hook_commands(settings, YOLO_EVENT, YOLO_COMMAND)
        else:
            add_hook_command(settings, YOLO_EVENT, YOLO_COMMAND, matcher=YOLO_MATCHER)

        write_settings(self.settings_path, settings)
        logger.info("YOLO mode %s", "disabled" if enabled else "enabled")
        return not enabled


def _approve(reason: str) -> Dict[str, str]:
    return {"decision": "approve", "reason": f"YOLO mode: {reason} - no restrictions"}


def yolo_decision(raw_input: Optional[str]) -> Optional[Dict[str, str]]:
    """根据 PreToolUse 事件决定是否自动批准

    返回 None 表示不做决定，由 Claude Code 弹出确认。
    raw_input 为 None 表示读取 stdin 超时。
    """
    if raw_input is None:
        return _approve("Approved due to timeout")

    try:
        event: Any = json.loads(raw_input.strip())
        tool_name = event.get("tool_name")
    except (ValueError, AttributeError):
        return _approve("Approved despite parsing error")

    if tool_name in MANUAL_CONFIRM_TOOLS:
        return None

    return _approve("All tools approved automatically")


def run_yolo_hook(stream: TextIO, timeout: float = STDIN_TIMEOUT) -> Optional[Dict[str, str]]:
    """读取 hook 输入并给出决定；读取失败同样批准"""
    try:
        raw_input = read_stream(stream, timeout)
    except OSError as e:
        logger.debug("%s", e)
        return _approve("Approved despite stdin error")
    return yolo_decision(raw_input)


def read_stream(stream: TextIO, timeout: float = STDIN_TIMEOUT) -> Optional[str]:
    """在超时时间内读完 stream；超时返回 None，读取出错时抛出 OSError"""
    result: Dict[str, Any] = {}

    def _reader():
        try:
            result["data"] = stream.read()
        except (OSError, ValueError) as e:
            result["error"] = e

    thread = threading.Thread(target=_reader, daemon=True)
    thread.start()
    thread.join(timeout)

    if thread.is_alive():
        return None
    if "error" in result:
        raise OSError(f"Failed to read hook input: {result['error']}")
    return result.get("data", "")
