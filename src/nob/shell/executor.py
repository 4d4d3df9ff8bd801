"""Command Runner - Executes shell commands and captures their output."""

import asyncio
import codecs
import os
import shlex
import sys
from dataclasses import dataclass
from typing import IO, Optional

from nob.config.defaults import DEFAULT_OUTPUT_LIMIT
from nob.telemetry.logger import LoggerMixin

# A `cd` containing any of these runs in the subshell instead
_SHELL_OPERATORS = (";", "&", "|", "`", "$(", ">", "<")

_READ_CHUNK = 4096


@dataclass
class CommandResult:
    """Result of running one command.

    Attributes:
        command: The command as submitted
        output: Combined stdout/stderr, truncated to its tail
        exit_code: Process exit status (1 on spawn failure)
        success: Whether exit_code is 0
        error: Description of a spawn or `cd` failure
        new_cwd: Set only when the command changed directory
    """

    command: str
    output: str = ""
    exit_code: int = 0
    success: bool = True
    error: Optional[str] = None
    new_cwd: Optional[str] = None


def _parse_cd(command: str) -> Optional[list[str]]:
    """Arguments of a plain `cd` command, or None if it is something else."""
    stripped = command.strip()
    if stripped != "cd" and not stripped.startswith("cd "):
        return None
    if any(op in stripped for op in _SHELL_OPERATORS):
        return None
    try:
        return shlex.split(stripped)[1:]
    except ValueError:
        return None


class CommandRunner(LoggerMixin):
    """Runs commands through the user's shell.

    Output is streamed to the terminal as it arrives and accumulated so the
    agent loop can report it back to the model. `cd` is handled in-process
    so directory changes persist; the new directory is returned in
    ``CommandResult.new_cwd`` for the caller to apply.

    Example:
        runner = CommandRunner()
        result = asyncio.run(runner.run("ls -la", cwd="/tmp"))
        print(result.exit_code, result.output)
    """

    def __init__(
        self,
        shell: Optional[str] = None,
        output_limit: int = DEFAULT_OUTPUT_LIMIT,
        stdout: Optional[IO[str]] = None,
        stderr: Optional[IO[str]] = None,
        echo: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            shell: Shell executable (defaults to $SHELL, then /bin/sh)
            output_limit: Characters of output kept in results
            stdout: Stream command stdout is echoed to
            stderr: Stream command stderr is echoed to
            echo: Whether to echo output at all
        """
        self.shell = shell or os.environ.get("SHELL") or "/bin/sh"
        self.output_limit = output_limit
        self._stdout = stdout
        self._stderr = stderr
        self.echo = echo

    async def run(self, command: str, cwd: str) -> CommandResult:
        """Run a command.

        Never raises for command failures: non-zero exits and spawn errors
        are reported in the result.

        Args:
            command: Command line to run
            cwd: Directory to run it in

        Returns:
            CommandResult
        """
        cd_args = _parse_cd(command)
        if cd_args is not None:
            return self._change_directory(command, cd_args, cwd)

        self.logger.info("Running command", command=command[:100], cwd=cwd)

        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                executable=self.shell,
            )
        except OSError as e:
            self.logger.error("Command failed to start", command=command[:100], error=str(e))
            return CommandResult(
                command=command,
                output=str(e),
                exit_code=1,
                success=False,
                error=str(e),
            )

        chunks: list[str] = []
        await asyncio.gather(
            self._pump(proc.stdout, self._stdout or sys.stdout, chunks),
            self._pump(proc.stderr, self._stderr or sys.stderr, chunks),
        )
        exit_code = await proc.wait()

        output = "".join(chunks)[-self.output_limit:]
        self.logger.info("Command finished", command=command[:100], exit_code=exit_code)
        return CommandResult(
            command=command,
            output=output,
            exit_code=exit_code,
            success=exit_code == 0,
        )

    async def _pump(
        self,
        reader: Optional[asyncio.StreamReader],
        sink: IO[str],
        chunks: list[str],
    ) -> None:
        if reader is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await reader.read(_READ_CHUNK)
            text = decoder.decode(data, final=not data)
            if text:
                chunks.append(text)
                if self.echo:
                    sink.write(text)
                    sink.flush()
            if not data:
                break

    def _change_directory(self, command: str, args: list[str], cwd: str) -> CommandResult:
        if len(args) > 1:
            message = "cd: too many arguments"
            return CommandResult(command=command, output=message, exit_code=1, success=False, error=message)

        target = args[0] if args else "~"
        path = os.path.join(cwd, os.path.expanduser(target))

        try:
            os.chdir(path)
        except OSError as e:
            message = f"cd: {target}: {e.strerror or e}"
            self.logger.info("Directory change failed", target=target, error=message)
            return CommandResult(command=command, output=message, exit_code=1, success=False, error=message)

        new_cwd = os.getcwd()
        self.logger.info("Directory changed", cwd=new_cwd)
        return CommandResult(
            command=command,
            output=f"Changed to {new_cwd}",
            exit_code=0,
            success=True,
            new_cwd=new_cwd,
        )
