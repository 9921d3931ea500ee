"""fedcrawl — Fediverse instance crawler.

Walks the peer graph of federated servers starting from a single seed host
and writes one NodeInfo descriptor per matching instance.

Quickstart::

    from fedcrawl.config import CrawlerConfig
    from fedcrawl.engine import crawl

    stats = await crawl(CrawlerConfig.from_env())
    print(stats.instances, stats.users)
"""

__version__ = "1.0.0"
