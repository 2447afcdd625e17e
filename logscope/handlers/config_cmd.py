"""
ConfigCommand — Show or change configuration

    logscope config                               show merged settings
    logscope config --set delivery.token_threshold=20000
    logscope config --set cache.ttl=5m --user     write user config instead
"""

from ..output import ToolResult


class ConfigCommand:
    """Display and modify settings through the CLI's ConfigManager."""

    def __init__(self, cli):
        self._cli = cli

    def show_config(self) -> ToolResult:
        return ToolResult(self._cli.config_manager.display())

    def set_config(self, key: str, value: str, scope: str = "project") -> ToolResult:
        manager = self._cli.config_manager
        error = manager.set(key, value, scope)
        if error:
            return ToolResult.error(error)

        path = manager.project_config_path if scope == "project" else manager.user_config_path
        return ToolResult(f"Set {key} = {value}\nSaved to: {path}")


# =============================================================================
# Command Registration
# =============================================================================

COMMAND_NAME = 'config'


def register_parser(subparsers):
    p = subparsers.add_parser('config', help='View or set configuration')
    p.add_argument('--set', metavar='KEY=VALUE',
                   help='Set config value (e.g., delivery.token_threshold=20000)')
    p.add_argument('--user', action='store_true',
                   help='Apply to user config instead of project')


def handle(cli, args):
    cmd = ConfigCommand(cli)

    if not args.set:
        return cmd.show_config()

    if '=' not in args.set:
        return ToolResult.error("Use --set KEY=VALUE (e.g., cache.ttl=5m)")

    key, value = args.set.split('=', 1)
    scope = "user" if args.user else "project"
    return cmd.set_config(key.strip(), value.strip(), scope)
