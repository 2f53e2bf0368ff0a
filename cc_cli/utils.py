import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ConfigIOError, ConfigParseError


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """深度合并两个字典，返回新字典

    source 中的字典值与 target 中同名的值递归合并；其他值（标量、列表、None）
    直接覆盖。只存在于 target 中的键保持不变。两个输入都不会被修改。
    """
    result = dict(target)

    for key, value in source.items():
        if isinstance(value, dict):
            existing = result.get(key)
            result[key] = deep_merge(existing if isinstance(existing, dict) else {}, value)
        else:
            result[key] = value

    return result


def mask_sensitive_value(value: str, mask_char: str = "*") -> str:
    """遮盖敏感信息"""
    if len(value) <= 8:
        return mask_char * len(value)

    visible_chars = 4
    return (
        value[:visible_chars]
        + mask_char * (len(value) - visible_chars * 2)
        + value[-visible_chars:]
    )


def ensure_directory_exists(path: Union[str, Path]) -> Path:
    """确保目录存在，如果不存在则创建"""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_json_file(path: Path, default: Optional[Any] = None) -> Any:
    """读取JSON文件；文件不存在时返回 default"""
    if not path.exists():
        return default

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid JSON in {path}: {e}", path=path) from e
    except OSError as e:
        raise ConfigIOError(f"Failed to read {path}: {e}", path=path) from e


def dump_json_file(path: Path, data: Any, mode: Optional[int] = None):
    """以两空格缩进写入JSON文件，保留非ASCII字符"""
    try:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(json.dumps(data, indent=2, ensure_ascii=False))
        if mode is not None:
            path.chmod(mode)
    except OSError as e:
        raise ConfigIOError(f"Failed to write {path}: {e}", path=path) from e
