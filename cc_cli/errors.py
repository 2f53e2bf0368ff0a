from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorKind(str, Enum):
    CONFIG_DIR_UNAVAILABLE = "config_dir_unavailable"
    CONFIG_FILE_MISSING = "config_file_missing"
    CONFIG_PARSE_ERROR = "config_parse_error"
    CONFIG_IO_ERROR = "config_io_error"
    MISSING_CONFIG_FRAGMENT = "missing_config_fragment"
    SWITCH_TRANSACTION_FAILED = "switch_transaction_failed"


class CCCliError(Exception):
    """cc-cli 所有可预期错误的基类，通过 kind 区分错误类型"""

    kind: ErrorKind = ErrorKind.CONFIG_IO_ERROR

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class ConfigDirUnavailable(CCCliError):
    kind = ErrorKind.CONFIG_DIR_UNAVAILABLE


class ConfigFileMissing(CCCliError):
    kind = ErrorKind.CONFIG_FILE_MISSING


class ConfigParseError(CCCliError):
    kind = ErrorKind.CONFIG_PARSE_ERROR


class ConfigIOError(CCCliError):
    kind = ErrorKind.CONFIG_IO_ERROR


class MissingConfigFragment(CCCliError):
    kind = ErrorKind.MISSING_CONFIG_FRAGMENT


class SwitchTransactionFailed(CCCliError):
    kind = ErrorKind.SWITCH_TRANSACTION_FAILED
