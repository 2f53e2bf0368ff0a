import copy
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml

from . import __version__
from .config import DEFAULT_TOKEN_NAME, ConfigManager
from .errors import CCCliError, ConfigFileMissing
from .notification import NotificationManager, send_notification
from .utils import mask_sensitive_value
from .validation import AUTH_TOKEN_KEY, get_claude_config, validation_errors
from .yolo import YoloManager, run_yolo_hook

REDACTED = "***REDACTED***"


# Windows GBK终端兼容性：安全输出Unicode字符
def safe_echo(message, **kwargs):
    """在Windows GBK终端下安全输出Unicode字符"""
    try:
        click.echo(message, **kwargs)
    except UnicodeEncodeError:
        safe_message = (message.replace('✓', '[OK]').replace('✗', '[X]').replace('❌', '[ERROR]')
                        .replace('⚠️', '[WARN]').replace('→', '->').replace('🔔', '[ON]').replace('🔕', '[OFF]').replace('✅', '[OK]'))
        click.echo(safe_message, **kwargs)


def configure_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _report_error(e: CCCliError):
    click.echo(f"Error: {e}", err=True)
    if isinstance(e, ConfigFileMissing):
        click.echo(f"  Create {e.path} with a 'sites' object to get started.", err=True)


def _token_labels(site_entry: Any) -> Dict[str, str]:
    try:
        raw_tokens = get_claude_config(site_entry).get("env", {}).get(AUTH_TOKEN_KEY)
    except (CCCliError, AttributeError):
        return {}
    if isinstance(raw_tokens, str):
        return {DEFAULT_TOKEN_NAME: raw_tokens}
    if isinstance(raw_tokens, dict):
        return raw_tokens
    return {}


def _select_token(site: str, site_entry: Any, token: Optional[str]) -> str:
    """按名称或值选择token；多token站点未指定时交互选择"""
    tokens = _token_labels(site_entry)

    if token is not None:
        return tokens.get(token, token)

    if not tokens:
        raise click.UsageError(f"Site '{site}' has no {AUTH_TOKEN_KEY}; pass one with --token")
    if len(tokens) == 1:
        return next(iter(tokens.values()))

    name = click.prompt(
        f"Select a token for '{site}'",
        type=click.Choice(list(tokens.keys())),
        default=next(iter(tokens.keys())),
    )
    return tokens[name]


def _display_token(value: Any) -> str:
    return mask_sensitive_value(value) if isinstance(value, str) else "***"


def redact_store(store: Dict[str, Any]) -> Dict[str, Any]:
    """复制配置并隐藏所有token"""
    redacted = copy.deepcopy(store)

    sites = redacted.get("sites")
    if isinstance(sites, dict):
        for site in sites.values():
            if not isinstance(site, dict):
                continue
            for field in ("claude", "config"):
                env = site.get(field, {}).get("env") if isinstance(site.get(field), dict) else None
                if not isinstance(env, dict) or AUTH_TOKEN_KEY not in env:
                    continue
                if isinstance(env[AUTH_TOKEN_KEY], dict):
                    env[AUTH_TOKEN_KEY] = {name: REDACTED for name in env[AUTH_TOKEN_KEY]}
                else:
                    env[AUTH_TOKEN_KEY] = REDACTED

    for key, field in (("currentConfig", "token"), ("currentCodexConfig", "apiKey")):
        snapshot = redacted.get(key)
        if isinstance(snapshot, dict) and field in snapshot:
            snapshot[field] = REDACTED

    return redacted


@click.group()
@click.version_option(version=__version__, prog_name="cc-cli")
@click.option('--debug', is_flag=True, help='输出调试日志')
def cli(debug: bool):
    """cc-cli - Claude Code API配置切换工具

    核心命令:
      - list: 列出 api_configs.json 中的所有站点
      - use: 切换到指定站点/token
      - current: 显示当前使用的配置
      - notify / yolo: 开关系统通知和YOLO模式
    """
    configure_logging(debug)


@cli.command(name="list")
def list_sites():
    """列出所有站点"""
    try:
        config_manager = ConfigManager()
        store = config_manager.get_all_configs()
        sites = store.get("sites") or {}

        if not sites:
            click.echo(f"No sites found. Add one to {config_manager.config_path}.")
            return

        current = config_manager.get_current_config()
        current_site = current.site if current else None

        click.echo("Available sites:")
        for site_key, site_entry in sites.items():
            marker = "* " if site_key == current_site else "  "
            url = site_entry.get("url", "") if isinstance(site_entry, dict) else ""
            labels = ", ".join(_token_labels(site_entry).keys()) or "-"
            click.echo(f"{marker}{site_key:<15} - {url}  [tokens: {labels}]")

    except CCCliError as e:
        _report_error(e)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('site')
@click.option('--token', '-t', help='token名称或token值；多token站点未指定时交互选择')
def use(site: str, token: Optional[str]):
    """切换到指定站点

    \b
    使用方式:
      cc-cli use <site>                # 单token站点直接切换
      cc-cli use <site> -t <name>      # 按名称选择token
      cc-cli use <site> -t sk-xxx      # 直接使用token值
    """
    try:
        config_manager = ConfigManager()
        store = config_manager.get_all_configs()
        sites = store.get("sites") or {}

        if site not in sites:
            available = ", ".join(sites.keys()) or "none"
            click.echo(f"Error: Site '{site}' not found. Available sites: {available}", err=True)
            sys.exit(1)

        site_entry = sites[site]
        chosen_token = _select_token(site, site_entry, token)
        snapshot = config_manager.switch_config(site, chosen_token, site_entry)

        safe_echo(f"✓ Switched to site '{snapshot.site_name}'")
        if snapshot.url:
            click.echo(f"  URL: {snapshot.url}")
        click.echo(f"  Token: {snapshot.token_name or 'custom'} ({mask_sensitive_value(chosen_token)})")
        click.echo(f"  Settings: {config_manager.settings_path}")

    except (click.ClickException, click.Abort):
        raise
    except CCCliError as e:
        _report_error(e)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
def current():
    """显示当前使用的 Claude 和 Codex 配置"""
    try:
        config_manager = ConfigManager()
        claude = config_manager.get_current_config()
        codex = config_manager.get_current_codex_config()

        if not claude and not codex:
            click.echo("No current config. Use 'cc-cli use <site>' to set one.")
            return

        if claude:
            click.echo(f"Claude: {claude.site_name or 'unknown'} - {claude.token_name or DEFAULT_TOKEN_NAME}")
            if claude.url:
                click.echo(f"  URL: {claude.url}")
            if claude.token:
                click.echo(f"  Token: {_display_token(claude.token)}")
            if claude.updated_at:
                click.echo(f"  Updated: {claude.updated_at}")

        if codex:
            click.echo(f"Codex: {codex.site_name or 'unknown'} - {codex.api_key_name or 'default API key'}")
            if codex.model:
                click.echo(f"  Model: {codex.model}")
            if codex.base_url:
                click.echo(f"  Base URL: {codex.base_url}")
            if codex.api_key:
                click.echo(f"  API key: {_display_token(codex.api_key)}")
            if codex.updated_at:
                click.echo(f"  Updated: {codex.updated_at}")

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
def validate():
    """检查 api_configs.json 格式是否正确"""
    try:
        config_manager = ConfigManager()
        store = config_manager.get_all_configs()
        problems = validation_errors(store)

        if problems:
            click.echo(f"✗ {config_manager.config_path} is invalid:", err=True)
            for problem in problems:
                click.echo(f"  - {problem}", err=True)
            sys.exit(1)

        safe_echo(f"✓ {config_manager.config_path} is valid ({len(store['sites'])} sites)")

    except CCCliError as e:
        _report_error(e)
        sys.exit(1)


@cli.command()
def info():
    """显示配置文件路径信息"""
    config_manager = ConfigManager()

    click.echo("cc-cli Configuration:")
    for label, path in (
        ("API configs", config_manager.config_path),
        ("Claude settings", config_manager.settings_path),
        ("Claude config", config_manager.claude_config_path),
    ):
        click.echo(f"  {label}: {path}")
        click.echo(f"    Exists: {'Yes' if path.exists() else 'No'}")


@cli.command()
@click.option('--format', 'output_format', type=click.Choice(['json', 'yaml']), default='json', help='输出格式')
@click.option('--output', '-o', type=click.Path(), help='输出文件路径')
@click.option('--include-secrets', is_flag=True, help='包含token等敏感信息（慎用）')
def export(output_format: str, output: Optional[str], include_secrets: bool):
    """导出 api_configs.json（默认隐藏token）"""
    try:
        store = ConfigManager().get_all_configs()
        data = store if include_secrets else redact_store(store)

        if output_format == 'yaml':
            text = yaml.safe_dump(data, allow_unicode=True, sort_keys=False, default_flow_style=False)
        else:
            text = json.dumps(data, indent=2, ensure_ascii=False)

        if output:
            Path(output).write_text(text, encoding='utf-8')
            safe_echo(f"✓ Config exported to '{output}'")
        else:
            click.echo(text)

        if include_secrets:
            click.echo("⚠️  Warning: Export includes sensitive information. Handle with care.", err=True)

    except CCCliError as e:
        _report_error(e)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--status', 'show_status', is_flag=True, help='只显示当前状态，不切换')
def notify(show_status: bool):
    """开启/关闭 Claude Code 系统通知"""
    try:
        manager = NotificationManager(ConfigManager().paths)

        if show_status:
            state = "on" if manager.check_status() else "off"
            click.echo(f"Notifications: {state}")
            return

        if manager.toggle():
            safe_echo("🔔 Notifications enabled")
            click.echo(f"  Command: {manager.get_config_paths()['notify_command']}")
        else:
            safe_echo("🔕 Notifications disabled")
        click.echo(f"  Settings: {manager.settings_path}")

    except CCCliError as e:
        _report_error(e)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--status', 'show_status', is_flag=True, help='只显示当前状态，不切换')
def yolo(show_status: bool):
    """开启/关闭 YOLO 模式（自动批准所有工具调用，慎用）"""
    try:
        manager = YoloManager(ConfigManager().paths)

        if show_status:
            state = "on" if manager.check_status() else "off"
            click.echo(f"YOLO mode: {state}")
            return

        if manager.toggle():
            safe_echo("⚠️  YOLO mode enabled: all tool calls will be approved automatically")
        else:
            safe_echo("✓ YOLO mode disabled")
        click.echo(f"  Settings: {manager.settings_path}")

    except CCCliError as e:
        _report_error(e)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command(name="notify-hook", hidden=True)
@click.argument('event_type', default='stop', type=click.Choice(['stop', 'notification']))
def notify_hook(event_type: str):
    """[内部命令] 供 Claude Code hooks 调用，发送系统通知"""
    safe_echo("✅")
    send_notification(event_type)


@cli.command(name="claude-yolo", hidden=True)
def claude_yolo():
    """[内部命令] 供 Claude Code PreToolUse hooks 调用，自动批准工具调用"""
    decision = run_yolo_hook(click.get_text_stream('stdin'))
    if decision is not None:
        click.echo(json.dumps(decision, ensure_ascii=False))


def main():
    """主入口点"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
