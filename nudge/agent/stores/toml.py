"""RuleSource backed by a TOML catalog file."""

import asyncio
import tomllib
from pathlib import Path
from typing import Any

from nudge.agent.stores.source import RuleSource
from nudge.db.errors import ConnectionError
from nudge.observability.logging import get_logger

logger = get_logger(__name__)


class TomlRuleSource(RuleSource):
    """Reads `[[rules]]` and `[[templates]]` arrays from a TOML file.

    The file is re-read on every call, so edits are picked up by the next
    catalog refresh. `load` parses the file once for both arrays.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    async def list_rules(self) -> list[dict[str, Any]]:
        data = await self._read()
        return list(data.get("rules", []))

    async def list_templates(self) -> list[dict[str, Any]]:
        data = await self._read()
        return list(data.get("templates", []))

    async def load(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        data = await self._read()
        return list(data.get("rules", [])), list(data.get("templates", []))

    async def _read(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._read_sync)

    def _read_sync(self) -> dict[str, Any]:
        try:
            with open(self._path, "rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConnectionError(f"Cannot read catalog file {self._path}", cause=e) from e
        except tomllib.TOMLDecodeError as e:
            logger.error("catalog_file_invalid", path=str(self._path), error=str(e))
            raise ConnectionError(f"Invalid TOML in catalog file {self._path}", cause=e) from e
