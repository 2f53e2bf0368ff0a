"""
cc-cli - Claude Code API配置切换工具

在多个API服务站点之间切换 Claude Code 的配置，并管理通知和YOLO模式。
"""

__version__ = "0.1.0"
__description__ = "A command-line tool for switching Claude Code between API provider configurations"

from .config import ConfigManager, ConfigPaths, CurrentConfig, CurrentCodexConfig
from .errors import (
    CCCliError,
    ConfigDirUnavailable,
    ConfigFileMissing,
    ConfigIOError,
    ConfigParseError,
    ErrorKind,
    MissingConfigFragment,
    SwitchTransactionFailed,
)
from .notification import NotificationManager
from .utils import deep_merge, mask_sensitive_value
from .validation import get_claude_config, normalize_config, resolve_fragment, validate_config
from .yolo import YoloManager

__all__ = [
    "ConfigManager",
    "ConfigPaths",
    "CurrentConfig",
    "CurrentCodexConfig",
    "CCCliError",
    "ConfigDirUnavailable",
    "ConfigFileMissing",
    "ConfigIOError",
    "ConfigParseError",
    "ErrorKind",
    "MissingConfigFragment",
    "SwitchTransactionFailed",
    "NotificationManager",
    "YoloManager",
    "deep_merge",
    "mask_sensitive_value",
    "get_claude_config",
    "normalize_config",
    "resolve_fragment",
    "validate_config",
]
