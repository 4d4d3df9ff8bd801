"""Completion Index - Ranked full-line completions for partial input.

Single-token input is matched against recent shell history and executable
names. Multi-token input dispatches on the first word:

- source, chmod, docker, kubectl, brew, cargo, go, python and make have
  dedicated tables or project lookups
- cd completes directories only
- git completes sub-commands, branches and changed files
- npm, yarn and pnpm complete sub-commands and package.json scripts
- anything else completes filesystem paths

Candidates are always full lines, so the editor can show the remainder of
the first one as an inline suggestion.
"""

import os
from typing import Callable, Optional, Sequence

from nob.config.defaults import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_MAX_COMPLETIONS,
    DEFAULT_QUERY_TIMEOUT,
)
from nob.shell import completion_sources as sources
from nob.shell.completion_sources import CompletionSourceError
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)

HISTORY_MATCH_LIMIT = 10
EXECUTABLE_MATCH_LIMIT = 20


def _starting_with(candidates: Sequence[str], prefix: str) -> list[str]:
    lowered = prefix.lower()
    return [c for c in candidates if c.lower().startswith(lowered)]


class CompletionIndex:
    """Answers "top completions for this partial line".

    Results are cached by lowercase partial. The cache is dropped wholesale
    once it grows past ``cache_size`` entries and whenever the working
    directory changes.

    Example:
        index = CompletionIndex(cwd="/home/me/project", shell_history=["git status"])
        index.complete("git st")  # ["git stash", "git status"]
        index.complete("cd sr")   # ["cd src/"]
    """

    def __init__(
        self,
        cwd: str,
        shell_history: Optional[Sequence[str]] = None,
        executables: Optional[Sequence[str]] = None,
        max_results: int = DEFAULT_MAX_COMPLETIONS,
        cache_size: int = DEFAULT_CACHE_SIZE,
        query_timeout: float = DEFAULT_QUERY_TIMEOUT,
        executable_loader: Callable[[], list[str]] = sources.discover_executables,
    ) -> None:
        """Initialize the index.

        Args:
            cwd: Directory filesystem and project lookups start from
            shell_history: Recent shell commands, most relevant first
            executables: Known command names (discovered lazily if omitted)
            max_results: Maximum completions returned
            cache_size: Cached partials kept before the cache is cleared
            query_timeout: Timeout for git queries in seconds
            executable_loader: Used to discover executables on first use
        """
        self._cwd = cwd
        self._shell_history = list(shell_history or [])
        self._executables = list(executables) if executables is not None else None
        self._executable_loader = executable_loader
        self.max_results = max_results
        self.cache_size = cache_size
        self.query_timeout = query_timeout
        self._cache: dict[str, list[str]] = {}

    @property
    def cwd(self) -> str:
        return self._cwd

    @cwd.setter
    def cwd(self, value: str) -> None:
        if value != self._cwd:
            self._cwd = value
            self.clear_cache()

    @property
    def executables(self) -> list[str]:
        """Executable names, discovered on first access."""
        if self._executables is None:
            self._executables = self._executable_loader()
            logger.debug("Discovered executables", count=len(self._executables))
        return self._executables

    @property
    def cache_len(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()

    def add_history(self, entry: str) -> None:
        """Make a submitted line the most recent history candidate."""
        if not entry:
            return
        if entry in self._shell_history:
            self._shell_history.remove(entry)
        self._shell_history.insert(0, entry)
        self.clear_cache()

    def complete(self, partial: str) -> list[str]:
        """Return up to max_results full-line completions for partial.

        Args:
            partial: Text typed so far

        Returns:
            Candidate lines, best first; [] when nothing matches
        """
        if not partial:
            return []

        key = partial.lower()
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            if " " in partial:
                completions = self._complete_arguments(partial)
            else:
                completions = self._complete_command(partial)
        except CompletionSourceError as e:
            logger.debug("Completion source failed", partial=partial, error=str(e))
            completions = []

        completions = completions[: self.max_results]

        if len(self._cache) >= self.cache_size:
            self._cache.clear()
        self._cache[key] = completions
        return completions

    def suggest(self, partial: str) -> Optional[str]:
        """Top completion that extends partial, if any."""
        for candidate in self.complete(partial):
            if candidate != partial and candidate.lower().startswith(partial.lower()):
                return candidate
        return None

    def _complete_command(self, partial: str) -> list[str]:
        history = _starting_with(self._shell_history, partial)[:HISTORY_MATCH_LIMIT]
        commands = _starting_with(self.executables, partial)[:EXECUTABLE_MATCH_LIMIT]

        seen: set[str] = set()
        completions = []
        for candidate in history + commands:
            lowered = candidate.lower()
            if lowered in seen:
                continue
            seen.add(lowered)
            completions.append(candidate)
        return completions

    def _complete_arguments(self, partial: str) -> list[str]:
        parts = partial.split(" ")
        last = parts[-1]
        prefix = " ".join(parts[:-1]) + " "
        command = parts[0].lower()

        smart = self._complete_smart(command, parts, last)
        if smart:
            return [prefix + c for c in smart]

        if command == "cd":
            candidates = self._entries(last, dirs_only=True)
        elif command == "git":
            candidates = self._complete_git(parts, last)
        elif command in ("npm", "yarn", "pnpm"):
            candidates = self._complete_npm(parts, last)
        else:
            candidates = self._entries(last)

        return [prefix + c for c in candidates]

    def _entries(self, fragment: str, dirs_only: bool = False) -> list[str]:
        return sources.list_entries(self._cwd, fragment, dirs_only=dirs_only)

    def _complete_smart(self, command: str, parts: list[str], last: str) -> list[str]:
        second_word = len(parts) == 2

        if command in ("source", "."):
            return self._complete_source(last)

        if command == "chmod" and second_word:
            return [p for p in sources.CHMOD_PRESETS if p.startswith(last)]

        if command in sources.SUBCOMMANDS and second_word:
            return _starting_with(sources.SUBCOMMANDS[command], last)

        if command in ("python", "python3") and second_word:
            if last.startswith("-"):
                return [f for f in sources.PYTHON_FLAGS if f.startswith(last)]
            return [e for e in self._entries(last) if e.endswith((".py", "/"))]

        if command == "make":
            try:
                targets = sources.makefile_targets(self._cwd)
            except CompletionSourceError as e:
                logger.debug("No make targets", error=str(e))
                return []
            return [t for t in targets if t.startswith(last)]

        return []

    def _complete_source(self, last: str) -> list[str]:
        activate = "venv/bin/activate"
        if activate.startswith(last) and os.path.exists(os.path.join(self._cwd, activate)):
            return [activate]

        candidates = []
        if ".env".startswith(last) and os.path.exists(os.path.join(self._cwd, ".env")):
            candidates.append(".env")

        for entry in self._entries(last):
            if entry in candidates:
                continue
            if entry.endswith(sources.SCRIPT_SUFFIXES) or "activate" in entry:
                candidates.append(entry)
        return candidates

    def _complete_git(self, parts: list[str], last: str) -> list[str]:
        if len(parts) == 2:
            return _starting_with(sources.GIT_SUBCOMMANDS, last)

        sub_command = parts[1]

        if sub_command in sources.GIT_BRANCH_SUBCOMMANDS:
            try:
                branches = sources.git_branches(self._cwd, timeout=self.query_timeout)
            except CompletionSourceError as e:
                logger.debug("git branches unavailable", error=str(e))
            else:
                matches = [b for b in branches if b.startswith(last)]
                if matches:
                    return matches

        if sub_command in sources.GIT_FILE_SUBCOMMANDS:
            try:
                changed = sources.git_changed_files(self._cwd, timeout=self.query_timeout)
            except CompletionSourceError as e:
                logger.debug("git status unavailable", error=str(e))
            else:
                matches = [f for f in changed if f.startswith(last)]
                if matches:
                    return matches

        return self._entries(last)

    def _complete_npm(self, parts: list[str], last: str) -> list[str]:
        if len(parts) == 2:
            return _starting_with(sources.NPM_SUBCOMMANDS, last)

        if parts[1] == "run" and len(parts) == 3:
            try:
                scripts = sources.package_scripts(self._cwd)
            except CompletionSourceError as e:
                logger.debug("package scripts unavailable", error=str(e))
                return []
            return [s for s in scripts if s.startswith(last)]

        return []
