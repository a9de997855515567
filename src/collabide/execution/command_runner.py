"""Bounded shell command execution inside a project mirror."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from collabide import config

LOGGER = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a single command run."""

    command: str
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    timed_out: bool = False
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """True when the command exited with status 0 within the timeout."""
        return self.exit_code == 0 and not self.timed_out and self.error is None

    @property
    def failure_message(self) -> str:
        """Return a one-line explanation of why the command failed."""
        if self.timed_out:
            return f"Command timed out after {self.duration_ms / 1000:.1f}s"
        if self.error:
            return self.error
        detail = self.stderr.strip() or self.stdout.strip()
        message = f"Command exited with code {self.exit_code}"
        return f"{message}: {detail}" if detail else message


class CommandRunner:
    """Runs shell commands with a working directory and a wall-clock timeout.

    Output is captured, decoded leniently and clamped so that a chatty command
    cannot flood the transcript shown to the requesting user.
    """

    def __init__(
        self,
        *,
        timeout: float = config.COMMAND_TIMEOUT_SECONDS,
        max_output_chars: int = config.MAX_COMMAND_OUTPUT_CHARS,
    ) -> None:
        if timeout <= 0:
            raise ValueError("Command timeout must be positive.")
        self._timeout = timeout
        self._max_output_chars = max_output_chars

    @property
    def timeout(self) -> float:
        """Return the per-command timeout in seconds."""
        return self._timeout

    def run(self, command: str, cwd: str | Path) -> CommandResult:
        """Execute ``command`` in ``cwd`` and return its captured result."""
        if not command or not command.strip():
            raise ValueError("Command must be a non-empty string.")

        LOGGER.info("Running command | cwd=%s | command=%s", cwd, command[:120])
        started = time.perf_counter()
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                cwd=str(cwd),
                env=self._build_environment(),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=os.name != "nt",
            )
        except OSError as exc:
            LOGGER.exception("Failed to start command: %s", command[:120])
            return CommandResult(
                command=command,
                stdout="",
                stderr="",
                exit_code=1,
                duration_ms=self._elapsed_ms(started),
                error=f"Failed to start command: {exc}",
            )

        try:
            stdout, stderr = process.communicate(timeout=self._timeout)
        except subprocess.TimeoutExpired:
            self._terminate(process)
            stdout, stderr = process.communicate()
            LOGGER.warning("Command timed out | timeout=%ss | command=%s", self._timeout, command[:120])
            return CommandResult(
                command=command,
                stdout=self._clamp(stdout or ""),
                stderr=self._clamp(stderr or ""),
                exit_code=TIMEOUT_EXIT_CODE,
                duration_ms=self._elapsed_ms(started),
                timed_out=True,
            )

        duration_ms = self._elapsed_ms(started)
        LOGGER.info(
            "Command finished | exit_code=%s | duration_ms=%d",
            process.returncode,
            duration_ms,
        )
        return CommandResult(
            command=command,
            stdout=self._clamp(stdout or ""),
            stderr=self._clamp(stderr or ""),
            exit_code=process.returncode,
            duration_ms=duration_ms,
        )

    def _terminate(self, process: subprocess.Popen[str]) -> None:
        """Kill the command together with any children it spawned."""
        if os.name != "nt":
            try:
                os.killpg(process.pid, signal.SIGKILL)
                return
            except ProcessLookupError:
                return
            except OSError:
                LOGGER.debug("killpg failed; falling back to kill()", exc_info=True)
        process.kill()

    def _build_environment(self) -> dict[str, str]:
        env = os.environ.copy()
        for secret in ("ANTHROPIC_API_KEY", "COLLABIDE_ANTHROPIC_API_KEY"):
            env.pop(secret, None)
        return env

    def _clamp(self, text: str) -> str:
        if len(text) <= self._max_output_chars:
            return text
        return f"{text[: self._max_output_chars]}\n... [output truncated]"

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)


__all__ = ["CommandResult", "CommandRunner", "TIMEOUT_EXIT_CODE"]
