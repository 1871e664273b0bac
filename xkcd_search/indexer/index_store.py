"""
Whoosh index store for the xkcd search tool.
Opens or creates the on-disk index, reports which comics it holds, commits
batches of comics and answers ranked queries.
"""
import logging
import os
import traceback
from dataclasses import dataclass
from typing import Optional

from whoosh import index
from whoosh.analysis import StemmingAnalyzer
from whoosh.fields import Schema, ID, NUMERIC, STORED, TEXT
from whoosh.query import Every, Or, Term

from xkcd_search.common.config import QUERY_LIMIT
from xkcd_search.common.errors import BatchCommitError, QueryError, StoreOpenError

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["title", "safe_title", "alt", "transcript"]
DEFAULT_QUERY_FIELDS = ("img", "alt", "number", "title")

# single letter titles such as "B" must stay searchable
TEXT_ANALYZER = StemmingAnalyzer(minsize=1)

COMIC_SCHEMA = Schema(
    id=ID(stored=True, unique=True),
    number=NUMERIC(numtype=int, stored=True),
    title=TEXT(stored=True, analyzer=TEXT_ANALYZER),
    safe_title=TEXT(stored=True, analyzer=TEXT_ANALYZER),
    alt=TEXT(stored=True, analyzer=TEXT_ANALYZER),
    transcript=TEXT(analyzer=TEXT_ANALYZER),
    img=ID(stored=True),
    published=STORED,
)


@dataclass(frozen=True)
class SearchHit:
    """A ranked query result. Fields that were not requested are None."""
    number: Optional[int]
    title: Optional[str]
    alt: Optional[str]
    img: Optional[str]
    score: float


class IndexStore:
    """Persistent full-text index of comics."""

    def __init__(self, ix, path, logger=None):
        self.ix = ix
        self.path = path
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def open_or_create(cls, path, logger=None):
        """Open the index at path, creating an empty one if there is none.

        Returns:
            (store, created) where created is True for a brand new index.

        Raises:
            StoreOpenError: the index exists but cannot be opened, or the
                directory cannot be created.
        """
        log = logger or logging.getLogger(__name__)
        log.info(f"Opening index at '{path}'")
        try:
            if index.exists_in(path):
                ix = index.open_dir(path)
                created = False
            else:
                log.info("Index does not exist, creating a new one")
                os.makedirs(path, exist_ok=True)
                ix = index.create_in(path, COMIC_SCHEMA)
                created = True
        except Exception as e:
            log.debug(traceback.format_exc())
            raise StoreOpenError(f"failed to open or create index at '{path}': {e}") from e
        return cls(ix, path, logger=log), created

    @staticmethod
    def _document(comic):
        return {
            'id': str(comic.num),
            'number': comic.num,
            'title': comic.title,
            'safe_title': comic.safe_title,
            'alt': comic.alt,
            'transcript': comic.transcript,
            'img': comic.img,
            'published': comic.published,
        }

    def list_indexed_ids(self):
        """Return the numbers of all comics in the index."""
        with self.ix.searcher() as searcher:
            # limit=None returns every matching document
            results = searcher.search(Every(), limit=None)
            ids = {hit['number'] for hit in results}
        self.logger.info(f"Hits: {len(ids)}")
        return ids

    def commit_batch(self, comics):
        """Add or overwrite comics in a single commit.

        A comic that cannot be turned into a document is logged and left out.
        Returns the number of documents written.

        Raises:
            BatchCommitError: the writer could not be obtained or committed.
        """
        if not comics:
            return 0

        # last copy of a comic wins, so one commit never holds duplicates
        unique = {}
        for comic in comics:
            unique[comic.num] = comic

        try:
            writer = self.ix.writer()
        except Exception as e:
            raise BatchCommitError(f"failed to open index writer: {e}") from e

        count = 0
        for num in sorted(unique):
            comic = unique[num]
            try:
                writer.update_document(**self._document(comic))
            except Exception as e:
                self.logger.error(f"Failed to index comic {num}: {e}")
                continue
            self.logger.debug(f'Indexing comic ID {num} "{comic.title}"')
            count += 1

        try:
            writer.commit()
        except Exception as e:
            self.logger.error(f"Batch commit failed: {e}")
            writer.cancel()
            raise BatchCommitError(f"batching failed: {e}") from e
        self.logger.info(f"Committed {count} comics to the index")
        return count

    def _match_query(self, terms):
        """Build an OR of the analyzed terms over every searchable field.

        The text is never parsed as query syntax, so wildcards, field
        prefixes, ranges and operators are plain words. Returns None when
        nothing searchable is left after analysis.
        """
        subqueries = []
        for fieldname in SEARCH_FIELDS:
            tokens = self.ix.schema[fieldname].process_text(terms, mode="query")
            for token in dict.fromkeys(tokens):
                subqueries.append(Term(fieldname, token))
        if not subqueries:
            return None
        return Or(subqueries)

    def query(self, terms, fields=DEFAULT_QUERY_FIELDS, limit=QUERY_LIMIT):
        """Run a ranked free-text query.

        Returns a list of SearchHit, best match first, carrying only the
        requested stored fields.

        Raises:
            QueryError: the query could not be executed.
        """
        if not terms or not terms.strip():
            return []
        wanted = set(fields)
        try:
            query = self._match_query(terms)
            if query is None:
                return []
            self.logger.debug(f"Query: {query}")
            with self.ix.searcher() as searcher:
                results = searcher.search(query, limit=limit)
                hits = []
                for hit in results:
                    stored = hit.fields()
                    hits.append(SearchHit(
                        number=stored.get('number') if 'number' in wanted else None,
                        title=stored.get('title') if 'title' in wanted else None,
                        alt=stored.get('alt') if 'alt' in wanted else None,
                        img=stored.get('img') if 'img' in wanted else None,
                        score=hit.score,
                    ))
        except Exception as e:
            self.logger.debug(traceback.format_exc())
            raise QueryError(f"query {terms!r} failed: {e}") from e
        return hits

    def doc_count(self):
        return self.ix.doc_count()

    def close(self):
        self.ix.close()
