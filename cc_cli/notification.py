import logging
import os
import platform
import subprocess
from pathlib import Path
from typing import Dict, Optional

from .config import ConfigPaths
from .errors import CCCliError
from .hooks import add_hook_command, event_has_command, read_settings, remove_hook_commands, write_settings

logger = logging.getLogger(__name__)

NOTIFY_MARKER = "cc-cli notify-hook"
NOTIFY_EVENTS = {
    "Stop": f"{NOTIFY_MARKER} stop",
    "Notification": f"{NOTIFY_MARKER} notification",
}

NOTIFICATION_TITLES = {
    "stop": "✅ 响应已完成",
    "notification": "🔔 需要您的关注",
}


class NotificationManager:
    """通过 settings.json 的 Stop/Notification hooks 开关 Claude Code 的系统通知"""

    def __init__(self, paths: Optional[ConfigPaths] = None):
        self.paths = paths or ConfigPaths.from_home()
        self.settings_path = self.paths.settings_path

    def check_status(self) -> bool:
        """两个事件都配置了通知命令时才视为已开启"""
        try:
            settings = read_settings(self.settings_path)
        except CCCliError as e:
            logger.debug("Treating notifications as disabled: %s", e)
            return False

        return all(event_has_command(settings, event, NOTIFY_MARKER) for event in NOTIFY_EVENTS)

    def toggle(self) -> bool:
        """切换通知状态，返回切换后的状态"""
        enabled = self.check_status()
        settings = read_settings(self.settings_path)

        if enabled:
            for event in NOTIFY_EVENTS:
                remove_hook_commands(settings, event, NOTIFY_MARKER)
        else:
            for event, command in NOTIFY_EVENTS.items():
                add_hook_command(settings, event, command)

        write_settings(self.settings_path, settings)
        logger.info("Notifications %s", "disabled" if enabled else "enabled")
        return not enabled

    def get_config_paths(self) -> Dict[str, str]:
        return {
            "claude_dir": str(self.paths.claude_dir),
            "settings_file": str(self.settings_path),
            "notify_command": NOTIFY_MARKER,
        }


def get_project_name(cwd: Optional[Path] = None) -> Optional[str]:
    """当前目录名作为项目名；位于主目录时返回 None"""
    cwd = cwd or Path.cwd()
    home = Path.home()
    if cwd == home or cwd.name == home.name:
        return None
    return cwd.name


def build_notify_command(title: str, subtitle: str) -> Optional[list]:
    system = platform.system()
    if system == "Darwin":
        script = f'display notification "{subtitle}" with title "{title}" sound name "default"'
        return ["osascript", "-e", script]
    if system == "Linux":
        return ["notify-send", title, subtitle]
    return None


def send_notification(event_type: str = "stop") -> bool:
    """发送系统通知，不等待通知进程结束；失败时只记录日志"""
    title = NOTIFICATION_TITLES.get(event_type, NOTIFICATION_TITLES["stop"])
    project_name = get_project_name()
    subtitle = f"🗂️ {project_name}" if project_name else "🤖 Claude Code"

    command = build_notify_command(title, subtitle)
    if command is None:
        logger.debug("Desktop notifications are not supported on %s", platform.system())
        return False

    try:
        subprocess.Popen(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=os.name != "nt",
        )
        return True
    except OSError as e:
        logger.debug("Failed to send notification: %s", e)
        return False
