from typing import Any, Dict, List, Literal

from pydantic import BaseModel

from .errors import MissingConfigFragment


BASE_URL_KEY = "ANTHROPIC_BASE_URL"
VERTEX_BASE_URL_KEY = "ANTHROPIC_VERTEX_BASE_URL"
AUTH_TOKEN_KEY = "ANTHROPIC_AUTH_TOKEN"


class ResolvedFragment(BaseModel):
    """站点的有效 Claude 配置片段，source 记录它来自哪个字段"""
    source: Literal["claude", "config"]
    settings: Dict[str, Any]


def resolve_fragment(site_entry: Any) -> ResolvedFragment:
    """解析站点的有效配置片段：优先 claude 字段，兼容老格式 config 字段"""
    if not isinstance(site_entry, dict):
        raise MissingConfigFragment("Site entry must be an object")

    for source in ("claude", "config"):
        value = site_entry.get(source)
        if value is None:
            continue
        if not isinstance(value, dict):
            raise MissingConfigFragment(f"Site field '{source}' must be an object")
        return ResolvedFragment(source=source, settings=value)

    raise MissingConfigFragment("Site entry has neither a 'claude' nor a 'config' field")


def get_claude_config(site_entry: Any) -> Dict[str, Any]:
    return resolve_fragment(site_entry).settings


def is_set(value: Any) -> bool:
    """按JSON真值判断字段是否设置：空字符串、0、False、None视为未设置"""
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


def normalize_config(store: Any) -> Any:
    """规范化配置（清理冗余 + 迁移老格式），原地修改并返回 store

    - 只有 config 没有 claude：重命名为 claude
    - claude 与 config 内容相同：删除冗余的 config
    """
    if not isinstance(store, dict) or not isinstance(store.get("sites"), dict):
        return store

    for site in store["sites"].values():
        if not isinstance(site, dict):
            continue

        has_claude = site.get("claude") is not None
        has_config = site.get("config") is not None

        if has_config and not has_claude:
            site["claude"] = site.pop("config")
        elif has_config and has_claude and site["claude"] == site["config"]:
            del site["config"]

    return store


def _site_errors(site_key: str, site: Any) -> List[str]:
    if not isinstance(site, dict) or not is_set(site.get("url")):
        return [f"Site '{site_key}': missing 'url'"]

    try:
        fragment = get_claude_config(site)
    except MissingConfigFragment as e:
        return [f"Site '{site_key}': {e}"]

    env = fragment.get("env")
    if not isinstance(env, dict) or not is_set(env.get(AUTH_TOKEN_KEY)):
        return [f"Site '{site_key}': missing env.{AUTH_TOKEN_KEY}"]

    has_base_url = is_set(env.get(BASE_URL_KEY))
    has_vertex_base_url = is_set(env.get(VERTEX_BASE_URL_KEY))

    # 两种URL配置互斥，且必须有其一
    if has_base_url and has_vertex_base_url:
        return [f"Site '{site_key}': {BASE_URL_KEY} and {VERTEX_BASE_URL_KEY} are mutually exclusive"]
    if not has_base_url and not has_vertex_base_url:
        return [f"Site '{site_key}': one of {BASE_URL_KEY} or {VERTEX_BASE_URL_KEY} is required"]

    url_key = BASE_URL_KEY if has_base_url else VERTEX_BASE_URL_KEY
    if not isinstance(env[url_key], str):
        return [f"Site '{site_key}': env.{url_key} must be a string"]

    auth_token = env[AUTH_TOKEN_KEY]
    if isinstance(auth_token, str):
        if not auth_token.strip():
            return [f"Site '{site_key}': env.{AUTH_TOKEN_KEY} is blank"]
    elif isinstance(auth_token, dict):
        if not auth_token:
            return [f"Site '{site_key}': env.{AUTH_TOKEN_KEY} has no tokens"]
    else:
        return [f"Site '{site_key}': env.{AUTH_TOKEN_KEY} must be a string or an object"]

    return []


def validation_errors(store: Any) -> List[str]:
    """返回配置中的问题列表，空列表表示配置有效"""
    if not isinstance(store, dict):
        return ["Config must be an object"]

    sites = store.get("sites")
    if not isinstance(sites, dict):
        return ["Config must contain a 'sites' object"]

    errors = []
    for site_key, site in sites.items():
        errors.extend(_site_errors(site_key, site))
    return errors


def validate_config(store: Any) -> bool:
    return not validation_errors(store)
