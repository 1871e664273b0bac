"""
Fetch workers for the xkcd search tool.
Retrieves comics concurrently under the shared rate limiter and hands them to
a single aggregator thread.
"""
import logging
import queue
import threading
import traceback
from concurrent.futures import ThreadPoolExecutor, wait

from xkcd_search.common.config import DEFAULT_MAX_WORKERS, MISSING_COMIC_ID, PROGRESS_LOG_EVERY
from xkcd_search.common.errors import XKCDSearchError

_STOP = object()


class ComicFetcher:
    """
    Fetches a worklist of comics.

    Every comic number becomes its own task. Tasks wait on the rate limiter
    before calling the client, so the limiter sets the fetch rate and
    max_workers only bounds how many threads sit in that wait.
    """
    def __init__(self, client, rate_limiter, max_workers=DEFAULT_MAX_WORKERS, logger=None):
        self.client = client
        self.rate_limiter = rate_limiter
        self.max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)

    def _fetch_one(self, num, results, cancel_event):
        try:
            self.rate_limiter.wait(cancel_event)
        except XKCDSearchError as e:
            self.logger.error(f"Rate limiter wait failed for comic {num}: {e}")
            return False
        try:
            comic = self.client.get(num)
        except Exception as e:
            self.logger.error(f"Failed to get metadata for xkcd.com/{num}: {e}")
            self.logger.debug(traceback.format_exc())
            return False
        results.put(comic)
        return True

    def _aggregate(self, results, comics):
        count = 0
        while True:
            comic = results.get()
            if comic is _STOP:
                break
            comics.append(comic)
            count += 1
            if count % PROGRESS_LOG_EVERY == 0:
                self.logger.info(f"Fetched {count} comics..")
        self.logger.info(f"Fetched {count} comics")

    def fetch_all(self, worklist, cancel_event=None):
        """Fetch every comic in worklist.

        Failed comics are logged and left out. Returns the fetched comics in
        completion order once every task has finished.
        """
        comics = []
        results = queue.Queue(maxsize=1)
        aggregator = threading.Thread(
            target=self._aggregate, args=(results, comics), name="comic-aggregator"
        )
        aggregator.daemon = True
        aggregator.start()

        try:
            with ThreadPoolExecutor(max_workers=self.max_workers,
                                    thread_name_prefix="comic-fetch") as executor:
                futures = [
                    executor.submit(self._fetch_one, num, results, cancel_event)
                    for num in worklist
                    if num != MISSING_COMIC_ID
                ]
                wait(futures)
        finally:
            results.put(_STOP)
            aggregator.join()

        failed = sum(1 for f in futures if not f.result())
        if failed:
            self.logger.warning(f"{failed} of {len(futures)} comics could not be fetched")
        return comics
