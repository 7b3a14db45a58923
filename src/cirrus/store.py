"""Persistence of server records between runs."""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional

from cirrus.models.record import ServerRecord


logger = logging.getLogger(__name__)


class RecordStore:
    """Stores one JSON document per managed server in the state directory."""

    def __init__(self, state_dir: Path):
        """Initialize record store."""
        self.state_dir = Path(state_dir)

    def _path(self, name: str) -> Path:
        return self.state_dir / f"{name}.json"

    async def load(self, name: str) -> Optional[ServerRecord]:
        """Load the record for a server, if one was saved."""
        path = self._path(name)
        if not await asyncio.to_thread(path.exists):
            return None

        content = await asyncio.to_thread(path.read_text)
        return ServerRecord.model_validate_json(content)

    async def save(self, name: str, record: ServerRecord) -> None:
        """Save a record, or drop it once the server is gone."""
        if record.id is None:
            await self.remove(name)
            return

        await asyncio.to_thread(lambda: self.state_dir.mkdir(parents=True, exist_ok=True))
        await asyncio.to_thread(self._path(name).write_text, record.model_dump_json(indent=2))
        logger.debug(f"Saved record for {name}")

    async def remove(self, name: str) -> None:
        """Remove a saved record."""
        path = self._path(name)
        if await asyncio.to_thread(path.exists):
            await asyncio.to_thread(path.unlink)
            logger.debug(f"Removed record for {name}")

    async def load_all(self) -> Dict[str, ServerRecord]:
        """Load every saved record keyed by server name."""
        if not await asyncio.to_thread(self.state_dir.exists):
            return {}

        records = {}
        for path in sorted(self.state_dir.glob("*.json")):
            content = await asyncio.to_thread(path.read_text)
            records[path.stem] = ServerRecord.model_validate_json(content)
        return records
