import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import CCCliError, ConfigDirUnavailable, ConfigFileMissing, ConfigParseError, SwitchTransactionFailed
from .utils import deep_merge, dump_json_file, ensure_directory_exists, load_json_file
from .validation import (
    AUTH_TOKEN_KEY,
    BASE_URL_KEY,
    VERTEX_BASE_URL_KEY,
    get_claude_config,
    is_set,
    normalize_config,
    validate_config,
)

logger = logging.getLogger(__name__)

STORE_FILENAME = "api_configs.json"
DEFAULT_TOKEN_NAME = "默认Token"

# 切换站点前必须从 settings.json 的 env 中清除的键，deep_merge 无法删除新片段里没有的键
RESET_ENV_KEYS = (
    "ANTHROPIC_AUTH_TOKEN",
    "ANTHROPIC_AUTH_KEY",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "ANTHROPIC_BASE_URL",
    "ANTHROPIC_VERTEX_BASE_URL",
    "ANTHROPIC_VERTEX_PROJECT_ID",
    "CLAUDE_CODE_USE_VERTEX",
    "CLAUDE_CODE_SKIP_VERTEX_AUTH",
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CurrentConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    site: Optional[str] = None
    site_name: Optional[str] = Field(default=None, alias="siteName")
    url: Optional[str] = None
    url_name: Optional[str] = Field(default=None, alias="urlName")
    token: Optional[str] = None
    token_name: Optional[str] = Field(default=None, alias="tokenName")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


class CurrentCodexConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    site: Optional[str] = None
    site_name: Optional[str] = Field(default=None, alias="siteName")
    model: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_key_name: Optional[str] = Field(default=None, alias="apiKeyName")
    provider: Optional[str] = None
    provider_name: Optional[str] = Field(default=None, alias="providerName")
    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


@dataclass
class ConfigPaths:
    """cc-cli 读写的所有文件路径，均位于用户主目录下"""
    home_dir: Path

    @classmethod
    def from_home(cls, home_dir: Optional[Path] = None) -> "ConfigPaths":
        return cls(home_dir=Path(home_dir) if home_dir else Path.home())

    @property
    def claude_dir(self) -> Path:
        return self.home_dir / ".claude"

    @property
    def cc_cli_dir(self) -> Path:
        return self.home_dir / ".cc-cli"

    @property
    def settings_path(self) -> Path:
        return self.claude_dir / "settings.json"

    @property
    def claude_config_path(self) -> Path:
        return self.claude_dir / "config.json"

    def store_candidates(self) -> List[Path]:
        # 首选 .cc-cli 目录，兼容 .claude 目录
        return [self.cc_cli_dir / STORE_FILENAME, self.claude_dir / STORE_FILENAME]


def find_token_name(raw_tokens: Any, token: str) -> Optional[str]:
    """在 ANTHROPIC_AUTH_TOKEN（字符串或 名称→token 映射）中查找 token 的名称"""
    if isinstance(raw_tokens, str):
        tokens = {DEFAULT_TOKEN_NAME: raw_tokens}
    elif isinstance(raw_tokens, dict):
        tokens = raw_tokens
    else:
        return None

    for name, value in tokens.items():
        if value == token:
            return name
    return None


class ConfigManager:
    def __init__(self, home_dir: Optional[Path] = None):
        self.paths = ConfigPaths.from_home(home_dir)
        self.claude_dir = self.paths.claude_dir
        self.cc_cli_dir = self.paths.cc_cli_dir
        self.settings_path = self.paths.settings_path
        self.claude_config_path = self.paths.claude_config_path
        self.config_path = self.find_config_path()

    def find_config_path(self) -> Path:
        candidates = self.paths.store_candidates()
        for candidate in candidates:
            if candidate.exists():
                return candidate
        return candidates[0]

    def ensure_config_dirs(self):
        try:
            ensure_directory_exists(self.claude_dir)
            ensure_directory_exists(self.cc_cli_dir)
        except OSError as e:
            raise ConfigDirUnavailable(f"Failed to create config directory: {e}") from e

    def config_exists(self) -> bool:
        return self.config_path.exists()

    def get_all_configs(self) -> Dict[str, Any]:
        """读取 api_configs.json，并把老格式的 config 字段补到 claude 字段（只补不删）"""
        self.ensure_config_dirs()

        if not self.config_path.exists():
            raise ConfigFileMissing(
                f"API config file not found: {self.config_path}",
                path=self.config_path,
            )

        store = load_json_file(self.config_path)
        if not isinstance(store, dict):
            raise ConfigParseError(
                f"API config file must contain a JSON object: {self.config_path}",
                path=self.config_path,
            )

        sites = store.get("sites")
        if isinstance(sites, dict):
            for site in sites.values():
                if isinstance(site, dict) and site.get("claude") is None and site.get("config") is not None:
                    site["claude"] = copy.deepcopy(site["config"])

        return store

    def _save_store(self, store: Dict[str, Any]):
        self.ensure_config_dirs()
        dump_json_file(self.config_path, normalize_config(store), mode=0o600)

    def get_current_config(self) -> Optional[CurrentConfig]:
        try:
            data = self.get_all_configs().get("currentConfig")
            return CurrentConfig.model_validate(data) if data else None
        except (CCCliError, ValidationError) as e:
            logger.warning("Failed to read current config: %s", e)
            return None

    def get_current_codex_config(self) -> Optional[CurrentCodexConfig]:
        try:
            data = self.get_all_configs().get("currentCodexConfig")
            return CurrentCodexConfig.model_validate(data) if data else None
        except (CCCliError, ValidationError) as e:
            logger.warning("Failed to read current Codex config: %s", e)
            return None

    def save_current_config(self, config: CurrentConfig) -> CurrentConfig:
        snapshot = config.model_copy(update={"updated_at": _timestamp()})

        store = self.get_all_configs()
        store["currentConfig"] = snapshot.model_dump(by_alias=True, exclude_none=True)
        self._save_store(store)

        return snapshot

    def save_current_codex_config(self, config: CurrentCodexConfig) -> CurrentCodexConfig:
        snapshot = config.model_copy(update={"updated_at": _timestamp()})

        store = self.get_all_configs()
        store["currentCodexConfig"] = snapshot.model_dump(by_alias=True, exclude_none=True)
        self._save_store(store)

        return snapshot

    def _load_live_document(self, path: Path) -> Dict[str, Any]:
        try:
            data = load_json_file(path, default={})
        except CCCliError as e:
            logger.warning("Ignoring unreadable %s: %s", path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring %s: expected a JSON object", path)
            return {}
        return data

    def get_settings(self) -> Dict[str, Any]:
        return self._load_live_document(self.settings_path)

    def get_claude_config_json(self) -> Dict[str, Any]:
        return self._load_live_document(self.claude_config_path)

    def save_settings(self, settings: Dict[str, Any]):
        self.ensure_config_dirs()
        dump_json_file(self.settings_path, settings)

    def save_claude_config_json(self, config: Dict[str, Any]):
        self.ensure_config_dirs()
        dump_json_file(self.claude_config_path, config)

    def switch_config(self, site: str, token: str, site_entry: Dict[str, Any]) -> CurrentConfig:
        """切换到指定站点和token

        先记录当前选择到 api_configs.json，然后把站点的 claude 片段合并进
        settings.json，并更新 config.json 的 primaryApiKey。三个文件分别写入，
        中途失败不会回滚。
        """
        try:
            fragment = get_claude_config(site_entry)
            env = fragment.get("env")
            if not isinstance(env, dict):
                env = {}

            snapshot = self.save_current_config(CurrentConfig(
                site=site,
                site_name=site,
                url=env.get(BASE_URL_KEY) or env.get(VERTEX_BASE_URL_KEY),
                token=token,
                token_name=find_token_name(env.get(AUTH_TOKEN_KEY), token),
            ))

            settings = self.get_settings()
            claude_config_json = self.get_claude_config_json()

            # primaryApiKey 用于跳过强制登录，必须换成新站点
            claude_config_json.pop("primaryApiKey", None)
            claude_config_json["primaryApiKey"] = snapshot.site_name

            settings_env = settings.get("env")
            if isinstance(settings_env, dict):
                for key in RESET_ENV_KEYS:
                    settings_env.pop(key, None)
            settings.pop("model", None)

            config_to_merge = copy.deepcopy(fragment)
            merge_env = config_to_merge.get("env")
            if isinstance(merge_env, dict) and is_set(merge_env.get(AUTH_TOKEN_KEY)):
                merge_env[AUTH_TOKEN_KEY] = token

            self.save_settings(deep_merge(settings, config_to_merge))
            self.save_claude_config_json(claude_config_json)
        except Exception as e:
            raise SwitchTransactionFailed(f"Failed to switch config: {e}") from e

        logger.info("Switched to site '%s' (token: %s)", site, snapshot.token_name or "custom")
        return snapshot

    def validate_config(self, store: Any) -> bool:
        return validate_config(store)
