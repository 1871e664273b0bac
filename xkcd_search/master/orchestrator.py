"""
Update and search workflow for the xkcd search tool.

XKCDSearch starts Uninitialized (no index handle). update() brings the local
index up to date with the remote API and leaves the instance Ready; search()
runs an update first when the instance is still Uninitialized.
"""
import traceback
from dataclasses import asdict, dataclass

from xkcd_search.client.xkcd_client import XKCDClient
from xkcd_search.common.config import SearchConfig
from xkcd_search.common.errors import RemoteUnavailableError, StoreOpenError
from xkcd_search.crawler.fetcher import ComicFetcher
from xkcd_search.crawler.rate_limiter import RateLimiter
from xkcd_search.indexer.index_store import IndexStore
from xkcd_search.master.sync_planner import plan
from xkcd_search.search.resolver import QueryResolver


@dataclass(frozen=True)
class UpdateReport:
    """Summary of one update run."""
    latest: int
    created: bool
    already_indexed: int
    requested: int
    fetched: int
    indexed: int

    def to_dict(self):
        return asdict(self)


class XKCDSearch:
    """
    Keeps a local index of xkcd comics and answers queries against it.

    The index handle is not safe for concurrent updates; callers must run
    one update at a time.
    """
    def __init__(self, config=None, client=None, rate_limiter=None):
        self.config = config or SearchConfig()
        self.logger = self.config.logger
        self._owns_client = client is None
        self.client = client or XKCDClient(base_url=self.config.base_url)
        self.rate_limiter = rate_limiter or RateLimiter(self.config.rate_interval)
        self.store = None

    @property
    def ready(self):
        return self.store is not None

    def _open_store(self):
        return IndexStore.open_or_create(self.config.index_dir, logger=self.logger)

    def update(self, cancel_event=None):
        """Fetch every comic missing from the index and commit them in one batch.

        Comics that fail to download are logged and skipped.

        Raises:
            RemoteUnavailableError: the latest comic metadata could not be fetched.
            StoreOpenError: the index could not be opened, created or read.
            BatchCommitError: the batch could not be committed.
        """
        try:
            latest = self.client.latest()
        except Exception as e:
            self.logger.debug(traceback.format_exc())
            raise RemoteUnavailableError(f"failed to get latest comic metadata: {e}") from e

        store, created = self._open_store()
        try:
            if created:
                existing = set()
            else:
                self.logger.info("Index exists, checking if it needs to be updated")
                try:
                    existing = store.list_indexed_ids()
                except Exception as e:
                    raise StoreOpenError(f"failed to get all comics: {e}") from e
            to_fetch = plan(latest.num, existing)
            self.logger.info(
                f"There are {len(existing)} comics indexed out of {latest.num}, "
                f"will fetch {len(to_fetch)} comics"
            )

            fetcher = ComicFetcher(
                self.client, self.rate_limiter,
                max_workers=self.config.max_workers, logger=self.logger
            )
            comics = fetcher.fetch_all(to_fetch, cancel_event=cancel_event)
            indexed = store.commit_batch(comics)
        except Exception:
            store.close()
            raise

        if self.store is not None:
            self.store.close()
        self.store = store
        return UpdateReport(
            latest=latest.num,
            created=created,
            already_indexed=len(existing),
            requested=len(to_fetch),
            fetched=len(comics),
            indexed=indexed,
        )

    def _resolver(self):
        if self.store is None:
            self.update()
        return QueryResolver(self.store)

    def search(self, terms):
        """Return the image URL of the best matching comic, or "not found"."""
        return self._resolver().resolve(terms)

    def lookup(self, terms):
        """Return the best matching SearchHit, or None."""
        return self._resolver().best_hit(terms)

    def close(self):
        if self.store is not None:
            self.store.close()
            self.store = None
        if self._owns_client:
            self.client.close()
