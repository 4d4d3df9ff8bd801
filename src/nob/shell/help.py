"""Help text for the session verbs, the CLI and the configuration summary."""

from dataclasses import dataclass, field
from pathlib import Path

from nob.config.defaults import ENV_ACCOUNT_ID, ENV_API_TOKEN
from nob.config.schemas import NobConfig
from nob.shell.terminal import Colors


@dataclass
class HelpSection:
    """A titled list of (command, description) rows."""

    title: str
    rows: list[tuple[str, str]] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


SESSION_HELP = (
    HelpSection(
        "nob Commands",
        [
            ("nob on", "Enable AI mode"),
            ("nob off", "Switch to manual mode with autosuggestion"),
            ("nob exit", "Exit nob"),
            ("nob help", "Show this help"),
            ("nob version", "Show version"),
            ("nob show-config", "Show the current configuration"),
            ("nob clear-history", "Forget the AI conversation"),
            ("clear", "Clear screen"),
        ],
    ),
    HelpSection(
        "Bring Your Own API Key",
        [("nob set-api-key", "Configure your own API key (no daily limit)")],
        [
            "By default, nob uses a shared backend with a daily request limit.",
            "Get credentials: https://dash.cloudflare.com",
        ],
    ),
    HelpSection(
        "Keyboard Shortcuts",
        [
            ("Tab", "Accept autosuggestion (manual mode only)"),
            ("→ at end", "Accept autosuggestion (manual mode only)"),
            ("↑ / ↓", "Navigate command history"),
            ("← / →", "Move cursor left/right"),
            ("Ctrl+C", "Clear current input"),
            ("Ctrl+D", "Exit on an empty line"),
        ],
    ),
)

CLI_DESCRIPTION = "nob - AI-powered agentic terminal"

CLI_EPILOG = f"""\
commands:
  on / off          Start in AI mode / manual mode
  help              Show this help message
  version           Show the version
  set-api-key       Configure your Cloudflare Workers AI API key
  show-config       Show current configuration
  remove-api-key    Remove your API key (use shared backend)
  config show       Show the merged settings as YAML
  config init       Write a default settings file

bring your own API key:
  Get your credentials from https://dash.cloudflare.com
    Account ID: Workers & Pages > Overview (right sidebar)
    API Token:  My Profile > API Tokens > Create Token
  then run 'nob set-api-key', or set:
    export {ENV_ACCOUNT_ID}=your_account_id
    export {ENV_API_TOKEN}=your_api_token
"""


def _colorize(text: str, color: str, use_color: bool) -> str:
    if use_color:
        return f"{color}{text}{Colors.RESET}"
    return text


def format_session_help(use_color: bool = True) -> str:
    """Help shown by `nob help` inside a session."""
    width = max(len(cmd) for section in SESSION_HELP for cmd, _ in section.rows) + 2
    lines = [""]
    for section in SESSION_HELP:
        lines.append(_colorize(f"{section.title}:", Colors.BOLD + Colors.CYAN, use_color))
        for command, description in section.rows:
            lines.append(
                "  "
                + _colorize(command.ljust(width), Colors.CYAN, use_color)
                + _colorize(f"- {description}", Colors.GRAY, use_color)
            )
        for note in section.notes:
            lines.append("  " + _colorize(note, Colors.GRAY, use_color))
        lines.append("")
    return "\n".join(lines)


def _mask(value: str, keep: int = 8) -> str:
    return f"{value[:keep]}..."


def format_config_summary(
    config: NobConfig,
    credentials_path: Path,
    use_color: bool = True,
) -> str:
    """Summary shown by `nob show-config`. Secrets are masked."""
    llm = config.llm
    lines = ["", _colorize("Current Configuration", Colors.BOLD + Colors.BLUE, use_color), ""]

    if llm.has_personal_key:
        lines.append(_colorize("✓ Cloudflare Workers AI: Configured", Colors.GREEN, use_color))
        lines.append(_colorize(f"   Account ID: {_mask(llm.cloudflare_account_id)}", Colors.GRAY, use_color))
        lines.append(_colorize(f"   API Token: {'*' * 20}...", Colors.GRAY, use_color))
    else:
        lines.append(_colorize("! Cloudflare Workers AI: Not configured", Colors.YELLOW, use_color))
        lines.append(_colorize("   Using free tier (use your own key if rate limited)", Colors.GRAY, use_color))
        if llm.api_endpoint:
            lines.append(_colorize(f"   Backend: {llm.api_endpoint}", Colors.GRAY, use_color))

    lines.append(_colorize(f"   Model: {llm.model}", Colors.GRAY, use_color))
    lines.append("")
    lines.append(_colorize(f"   Config file: {credentials_path}", Colors.GRAY, use_color))
    lines.append("")
    return "\n".join(lines)
