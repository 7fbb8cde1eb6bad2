"""Shared CLI state and the store runner."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

import click

from cigraph.config.models import CigraphConfig
from cigraph.core.errors import CigError
from cigraph.core.logging import clear_request_id, get_log_file_path, set_request_id
from cigraph.store.sql import SqlGraphStore

T = TypeVar("T")


@dataclass
class CliContext:
    config: CigraphConfig
    db_path: Path
    tenant_id: str
    repo_id: str

    def run(self, fn: Callable[[SqlGraphStore], Awaitable[T]]) -> T:
        """Open the store, run ``fn`` on a fresh event loop, close the store.

        Each run gets its own request id in the logs. Library errors surface
        as click errors (exit code 1).
        """

        async def _main() -> T:
            store = SqlGraphStore.open(
                self.db_path,
                busy_timeout_ms=self.config.database.busy_timeout_ms,
                max_retries=self.config.database.max_retries,
            )
            try:
                return await fn(store)
            finally:
                await store.close()

        set_request_id()
        try:
            return asyncio.run(_main())
        except CigError as e:
            log_file = get_log_file_path()
            message = str(e) if log_file is None else f"{e}. See {log_file} for details."
            raise click.ClickException(message) from e
        finally:
            clear_request_id()


pass_cli_context = click.make_pass_decorator(CliContext)
