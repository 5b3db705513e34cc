from __future__ import annotations

import asyncio
import logging
import os
import signal
from typing import Any

import httpx
from sqlalchemy import text
from sqlalchemy.engine import Engine

from serial_worker.config import get_settings
from serial_worker.job import Action, Target

logger = logging.getLogger(__name__)


class CommandFailedError(RuntimeError):
    def __init__(self, command: str, returncode: int, output: str) -> None:
        first_line = output.splitlines()[0] if output else "<empty>"
        super().__init__(f"command failed (exit={returncode}): {command}: {first_line}")
        self.command = command
        self.returncode = returncode
        self.output = output


def http_probe(
    url: str,
    *,
    expected_status: int = 200,
    timeout_seconds: float | None = None,
    client: httpx.AsyncClient | None = None,
) -> Target:
    timeout = timeout_seconds if timeout_seconds is not None else get_settings().http_timeout_seconds

    async def is_satisfied() -> bool:
        if client is not None:
            response = await client.get(url, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as session:
                response = await session.get(url)
        return response.status_code == expected_status

    return is_satisfied


def sql_probe(engine: Engine, query: str, params: dict[str, Any] | None = None) -> Target:
    statement = text(query)
    bound = dict(params or {})

    def _check() -> bool:
        with engine.connect() as connection:
            row = connection.execute(statement, bound).first()
        if row is None:
            return False
        return bool(row[0])

    async def is_satisfied() -> bool:
        # Engine calls block; keep them off the event loop.
        return await asyncio.to_thread(_check)

    return is_satisfied


async def _run_shell(command: str) -> tuple[int, str]:
    process = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        # Drain the pipes and reap the shell so the transport is closed before re-raising.
        await asyncio.shield(process.communicate())
        raise

    output = stderr.decode(errors="replace").strip() or stdout.decode(errors="replace").strip()
    returncode = process.returncode if process.returncode is not None else -1
    return returncode, output


def command_probe(command: str) -> Target:
    async def is_satisfied() -> bool:
        returncode, _ = await _run_shell(command)
        return returncode == 0

    return is_satisfied


def command_action(command: str) -> Action:
    async def action() -> None:
        returncode, output = await _run_shell(command)
        if returncode != 0:
            raise CommandFailedError(command, returncode, output)
        logger.debug("command finished command=%s", command, extra={"event": "command_finished"})

    return action
