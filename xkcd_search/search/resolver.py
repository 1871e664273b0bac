"""
Resolves a free-text query to the image URL of the best matching comic.
"""
from xkcd_search.common.errors import DataIntegrityError
from xkcd_search.indexer.index_store import DEFAULT_QUERY_FIELDS

NOT_FOUND = "not found"


class QueryResolver:
    def __init__(self, store):
        self.store = store

    def best_hit(self, terms):
        """Return the top ranked SearchHit for terms, or None when nothing matches.

        Raises:
            DataIntegrityError: the best match has no image URL stored.
            QueryError: the index query failed.
        """
        hits = self.store.query(terms, fields=DEFAULT_QUERY_FIELDS)
        if not hits:
            return None
        hit = hits[0]
        if not hit.img:
            raise DataIntegrityError(f"no image URL found for comic {hit.number} ({hit.title!r})")
        return hit

    def resolve(self, terms):
        """Return the image URL of the best match, or NOT_FOUND."""
        hit = self.best_hit(terms)
        if hit is None:
            return NOT_FOUND
        return hit.img
