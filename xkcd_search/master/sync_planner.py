"""
Works out which comics still have to be fetched.
"""
from xkcd_search.common.config import MISSING_COMIC_ID


def plan(latest_id, existing_ids, missing_id=MISSING_COMIC_ID):
    """Return the comic numbers in 1..latest_id that are not indexed yet.

    The result is sorted ascending and never contains missing_id.
    """
    existing = set(existing_ids)
    return [
        num for num in range(1, latest_id + 1)
        if num not in existing and num != missing_id
    ]
