"""Crawler configuration.

Values come from the environment (see :meth:`CrawlerConfig.from_env`) and can
be overridden by the ``python -m fedcrawl`` flags.

==========================  ==================  ============================
Variable                    Default             Meaning
==========================  ==================  ============================
``TARGET_DIR``              ``output``          Descriptor output directory
``FEDCRAWL_SEED``           ``chaos.social``    First hostname to crawl
``FEDCRAWL_CONCURRENCY``    ``30``              Permit pool capacity
``FEDCRAWL_TIMEOUT``        ``5.0``             Per-request timeout (s)
``FEDCRAWL_SOFTWARE``       ``mastodon``        NodeInfo software to keep
``FEDCRAWL_LOG_LEVEL``      ``WARNING``         Root log level
==========================  ==================  ============================
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SEED = "chaos.social"
DEFAULT_TARGET_DIR = "output"
DEFAULT_CONCURRENCY = 30
DEFAULT_TIMEOUT = 5.0
DEFAULT_SOFTWARE = "mastodon"

# Domains known to flood peer lists with generated subdomains.
DEFAULT_DENYLIST: tuple[str, ...] = ("activitypub-troll.cf",)


@dataclass
class CrawlerConfig:
    target_dir: Path = field(default_factory=lambda: Path(DEFAULT_TARGET_DIR))
    seed: str = DEFAULT_SEED
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    software: str = DEFAULT_SOFTWARE
    denylist: tuple[str, ...] = DEFAULT_DENYLIST
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.target_dir = Path(self.target_dir)
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls) -> "CrawlerConfig":
        """Build a config from ``TARGET_DIR`` and the ``FEDCRAWL_*`` variables."""
        return cls(
            target_dir=Path(os.environ.get("TARGET_DIR", DEFAULT_TARGET_DIR)),
            seed=os.environ.get("FEDCRAWL_SEED", DEFAULT_SEED),
            concurrency=int(os.environ.get("FEDCRAWL_CONCURRENCY", str(DEFAULT_CONCURRENCY))),
            timeout=float(os.environ.get("FEDCRAWL_TIMEOUT", str(DEFAULT_TIMEOUT))),
            software=os.environ.get("FEDCRAWL_SOFTWARE", DEFAULT_SOFTWARE),
            log_level=os.environ.get("FEDCRAWL_LOG_LEVEL", "WARNING").upper(),
        )
