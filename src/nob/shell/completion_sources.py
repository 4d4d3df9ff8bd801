"""Completion sources - Where completion candidates come from.

Static sub-command tables for common tools, plus bounded queries against the
working directory: directory listings, git branches and status, Makefile
targets and package.json scripts. Every query raises CompletionSourceError on
failure; callers decide how to degrade.
"""

import json
import os
import re
import subprocess
from pathlib import Path
from typing import Optional

from nob.telemetry.logger import get_logger

logger = get_logger(__name__)

# Verbs available inside the nob session, offered alongside executables.
BUILTIN_VERBS = ("nob on", "nob off", "nob exit", "clear", "exit")

CHMOD_PRESETS = ("+x", "-x", "755", "644", "600", "777", "700", "u+x", "a+x")

PYTHON_FLAGS = ("-m", "-c", "--version", "-V", "-h", "--help")

SUBCOMMANDS: dict[str, tuple[str, ...]] = {
    "docker": (
        "build", "compose", "container", "exec", "image", "images",
        "kill", "logs", "network", "ps", "pull", "push", "restart",
        "rm", "rmi", "run", "start", "stop", "system", "volume",
    ),
    "kubectl": (
        "apply", "create", "delete", "describe", "edit", "exec", "get",
        "logs", "port-forward", "rollout", "scale", "set",
    ),
    "brew": (
        "install", "uninstall", "update", "upgrade", "search", "info",
        "list", "services", "doctor", "cleanup", "outdated",
    ),
    "cargo": (
        "build", "run", "test", "check", "clean", "doc", "new", "init",
        "add", "remove", "update", "publish", "fmt", "clippy",
    ),
    "go": (
        "build", "run", "test", "get", "install", "mod", "fmt", "vet",
        "doc", "clean", "env", "version",
    ),
}

GIT_SUBCOMMANDS = (
    "add", "bisect", "branch", "checkout", "cherry-pick", "clone", "commit",
    "diff", "fetch", "grep", "init", "log", "merge", "mv", "pull", "push",
    "rebase", "remote", "reset", "restore", "revert", "rm", "show", "stash",
    "status", "switch", "tag", "worktree",
)

# git sub-commands whose argument is a branch, and those whose argument is a
# changed file. checkout takes either.
GIT_BRANCH_SUBCOMMANDS = ("checkout", "switch", "branch", "merge", "rebase")
GIT_FILE_SUBCOMMANDS = ("add", "diff", "restore", "rm", "checkout")

NPM_SUBCOMMANDS = (
    "access", "adduser", "audit", "bin", "bugs", "cache", "ci", "completion",
    "config", "dedupe", "deprecate", "diff", "dist-tag", "docs", "doctor",
    "edit", "exec", "explain", "explore", "find-dupes", "fund", "help",
    "hook", "init", "install", "install-ci-test", "install-test", "link",
    "ll", "login", "logout", "ls", "org", "outdated", "owner", "pack",
    "ping", "pkg", "prefix", "profile", "prune", "publish", "rebuild",
    "repo", "restart", "root", "run", "run-script", "search", "set",
    "shrinkwrap", "star", "stars", "start", "stop", "team", "test",
    "token", "uninstall", "unpublish", "unstar", "update", "version", "view", "whoami",
)

SCRIPT_SUFFIXES = (".sh", ".bash", ".zsh")

_MAKE_TARGET_RE = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_-]*):")


class CompletionSourceError(Exception):
    """A completion source could not produce candidates."""


def discover_executables(path_env: Optional[str] = None) -> list[str]:
    """List executable names on PATH plus the session's built-in verbs.

    Args:
        path_env: PATH value to scan (defaults to $PATH)

    Returns:
        Sorted, de-duplicated names
    """
    names: set[str] = set(BUILTIN_VERBS)
    path_env = os.environ.get("PATH", "") if path_env is None else path_env

    for directory in path_env.split(os.pathsep):
        if not directory:
            continue
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.name.startswith(".") or " " in entry.name:
                        continue
                    try:
                        if entry.is_file() and os.access(entry.path, os.X_OK):
                            names.add(entry.name)
                    except OSError:
                        continue
        except OSError:
            continue

    return sorted(names)


def list_entries(cwd: str, partial: str, dirs_only: bool = False) -> list[str]:
    """Complete a path fragment against the filesystem.

    The fragment is split at its last "/": the head names the directory to
    list (relative to cwd unless absolute or ~-prefixed), the tail is a
    case-insensitive prefix. Hidden entries are skipped unless the prefix
    starts with ".". Directories get a trailing "/".

    Args:
        cwd: Directory relative paths are resolved against
        partial: Path fragment being completed
        dirs_only: Only return directories

    Returns:
        Sorted completions, each starting with the fragment's directory part

    Raises:
        CompletionSourceError: If the directory cannot be listed
    """
    head, sep, file_prefix = partial.rpartition("/")
    dir_part = head + sep
    search_dir = os.path.join(cwd, os.path.expanduser(dir_part)) if dir_part else cwd

    try:
        names = os.listdir(search_dir)
    except OSError as e:
        raise CompletionSourceError(f"Cannot list {search_dir}: {e}") from e

    lowered = file_prefix.lower()
    completions = []
    for name in names:
        if name.startswith(".") and not file_prefix.startswith("."):
            continue
        if not name.lower().startswith(lowered):
            continue
        is_dir = os.path.isdir(os.path.join(search_dir, name))
        if dirs_only and not is_dir:
            continue
        completions.append(dir_part + name + ("/" if is_dir else ""))

    return sorted(completions)


def _run_git(args: list[str], cwd: str, timeout: float) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise CompletionSourceError(f"git {args[0]} timed out") from e
    except OSError as e:
        raise CompletionSourceError(f"git unavailable: {e}") from e

    if result.returncode != 0:
        raise CompletionSourceError(f"git {args[0]} exited with {result.returncode}")
    return result.stdout


def git_branches(cwd: str, timeout: float = 1.0) -> list[str]:
    """Local and remote branch names, without the origin/ prefix or HEAD.

    Raises:
        CompletionSourceError: If git fails, times out or cwd is not a repo
    """
    output = _run_git(["branch", "-a"], cwd, timeout)
    branches = []
    for line in output.splitlines():
        name = line.lstrip("* ").strip().replace("remotes/origin/", "")
        if name and "HEAD" not in name and name not in branches:
            branches.append(name)
    return branches


def git_changed_files(cwd: str, timeout: float = 1.0) -> list[str]:
    """Paths reported by `git status --porcelain`.

    Raises:
        CompletionSourceError: If git fails, times out or cwd is not a repo
    """
    output = _run_git(["status", "--porcelain"], cwd, timeout)
    return [line[3:].strip() for line in output.splitlines() if line[3:].strip()]


def makefile_targets(cwd: str) -> list[str]:
    """Target names declared in cwd's Makefile.

    Raises:
        CompletionSourceError: If there is no readable Makefile
    """
    path = Path(cwd) / "Makefile"
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise CompletionSourceError(f"No Makefile in {cwd}") from e

    targets = []
    for line in content.splitlines():
        match = _MAKE_TARGET_RE.match(line)
        if match and match.group(1) not in targets:
            targets.append(match.group(1))
    return targets


def package_scripts(cwd: str) -> list[str]:
    """Script names declared in cwd's package.json.

    Raises:
        CompletionSourceError: If package.json is missing or malformed
    """
    path = Path(cwd) / "package.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise CompletionSourceError(f"No usable package.json in {cwd}") from e

    scripts = data.get("scripts") if isinstance(data, dict) else None
    if not isinstance(scripts, dict):
        return []
    return list(scripts)
