"""Descriptor store — one JSON file per crawled instance."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fedcrawl.errors import PersistenceError
from fedcrawl.nodeinfo import NodeInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstanceDescriptor:
    domain: str
    base_url: str
    nodeinfo: NodeInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "mastodon_url": self.base_url,
            "nodeinfo": self.nodeinfo.to_document(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstanceDescriptor":
        return cls(
            domain=data["domain"],
            base_url=data["mastodon_url"],
            nodeinfo=NodeInfo.model_validate(data["nodeinfo"]),
        )


class DescriptorStore:
    """Writes :class:`InstanceDescriptor` objects to ``<target_dir>/<domain>.json``.

    Args:
        target_dir: Output directory.  Created by :meth:`ensure`.
    """

    def __init__(self, target_dir: str | Path) -> None:
        self.target_dir = Path(target_dir)

    def ensure(self) -> None:
        """Create the output directory if it does not exist yet.

        Raises:
            PersistenceError: the directory could not be created.
        """
        try:
            self.target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot create output directory {self.target_dir}: {exc}") from exc

    def path_for(self, domain: str) -> Path:
        # Peer lists are remote input; never let a hostname escape target_dir.
        if not domain or "/" in domain or "\\" in domain or domain.startswith("."):
            raise PersistenceError(f"Refusing to use {domain!r} as a file name")
        return self.target_dir / f"{domain}.json"

    async def save(self, descriptor: InstanceDescriptor) -> Path:
        """Persist *descriptor*; returns the written path."""
        return await asyncio.to_thread(self._write, descriptor)

    def load(self, domain: str) -> InstanceDescriptor:
        """Read a previously saved descriptor back."""
        path = self.path_for(domain)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}") from exc
        return InstanceDescriptor.from_dict(data)

    def _write(self, descriptor: InstanceDescriptor) -> Path:
        path = self.path_for(descriptor.domain)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(descriptor.to_dict()), encoding="utf-8")
            tmp.replace(path)  # atomic on the same filesystem
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc
        logger.debug("saved %s", path)
        return path
