"""Utility functions."""
from __future__ import annotations

import json
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence

TIMEOUT_RETURNCODE = 124
NOT_FOUND_RETURNCODE = 127


@dataclass
class CommandResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return self.stdout.strip()

    def describe_failure(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip() or "no output"
        return f"`{' '.join(self.command[:4])}` exited with {self.returncode}: {detail[-500:]}"


class CommandRunner(Protocol):
    def __call__(
        self,
        command: Sequence[str],
        *,
        input_text: str | None = None,
        timeout: float | None = None,
    ) -> CommandResult: ...


def _decode(raw: bytes | None) -> str:
    return (raw or b"").decode("utf-8", errors="replace")


def run_command(
    command: Sequence[str],
    *,
    input_text: str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run ``command`` to completion, mapping spawn errors and timeouts to shell-style return codes.

    ``input_text`` is encoded with ``surrogateescape`` so text read from disk the same way
    reaches the child byte for byte. Output that is not valid UTF-8 is decoded with
    replacement characters.
    """

    argv = list(command)
    payload = input_text.encode("utf-8", errors="surrogateescape") if input_text is not None else None
    try:
        process = subprocess.run(
            argv,
            input=payload,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(command=argv, returncode=TIMEOUT_RETURNCODE, stdout="", stderr=f"timed out after {timeout}s")
    except OSError as exc:
        return CommandResult(command=argv, returncode=NOT_FOUND_RETURNCODE, stdout="", stderr=str(exc))
    return CommandResult(
        command=argv,
        returncode=process.returncode,
        stdout=_decode(process.stdout),
        stderr=_decode(process.stderr),
    )


def which(command: str) -> Optional[str]:
    return shutil.which(command)


def parse_count(output: str) -> int:
    """Return the integer on the last non-empty line of a CLI query result."""

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        raise ValueError("empty query output")
    return int(lines[-1])


def write_json(path: Path, payload: Mapping[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True, default=str)
