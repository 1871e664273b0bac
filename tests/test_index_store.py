"""
Tests for the Whoosh index store.
"""
import os
import shutil
import tempfile
import unittest
from unittest import mock

from fake_xkcd import make_comic
from xkcd_search.common.errors import BatchCommitError, QueryError, StoreOpenError
from xkcd_search.indexer.index_store import IndexStore

COMICS = [
    make_comic(1, "Barrel - Part 1", alt="Don't we all."),
    make_comic(2, "Petit Trees (sketch)", alt="'Petit' being a reference to Le Petit Prince"),
    make_comic(3, "Island (sketch)", alt="Hello, island"),
]


class TestIndexStore(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, 'index')
        self.store, self.created = IndexStore.open_or_create(self.path)

    def tearDown(self):
        self.store.close()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_new_index_is_created(self):
        self.assertTrue(self.created)
        self.assertEqual(self.store.doc_count(), 0)
        self.assertEqual(self.store.list_indexed_ids(), set())

    def test_existing_index_is_opened(self):
        self.store.commit_batch(COMICS)
        reopened, created = IndexStore.open_or_create(self.path)
        try:
            self.assertFalse(created)
            self.assertEqual(reopened.list_indexed_ids(), {1, 2, 3})
        finally:
            reopened.close()

    def test_unopenable_path_raises(self):
        not_a_dir = os.path.join(self.tmpdir, 'file')
        with open(not_a_dir, 'w') as f:
            f.write('not an index')
        with self.assertRaises(StoreOpenError):
            IndexStore.open_or_create(not_a_dir)

    def test_commit_batch(self):
        self.assertEqual(self.store.commit_batch(COMICS), 3)
        self.assertEqual(self.store.doc_count(), 3)
        self.assertEqual(self.store.list_indexed_ids(), {1, 2, 3})

    def test_empty_batch_is_noop(self):
        self.assertEqual(self.store.commit_batch([]), 0)
        self.assertEqual(self.store.doc_count(), 0)

    def test_list_indexed_ids_is_not_truncated(self):
        comics = [make_comic(n, f"Comic {n}") for n in range(1, 251)]
        self.store.commit_batch(comics)
        self.assertEqual(self.store.list_indexed_ids(), set(range(1, 251)))

    def test_reindexing_overwrites(self):
        self.store.commit_batch(COMICS)
        self.store.commit_batch([make_comic(2, "Petit Trees (sketch)")])
        self.assertEqual(self.store.doc_count(), 3)

    def test_duplicates_in_one_batch_are_indexed_once(self):
        self.store.commit_batch([COMICS[0], COMICS[0], COMICS[1]])
        self.assertEqual(self.store.doc_count(), 2)

    def test_failed_document_is_left_out(self):
        document = IndexStore._document

        def flaky(comic):
            if comic.num == 2:
                raise ValueError("bad comic")
            return document(comic)

        with mock.patch.object(IndexStore, '_document', side_effect=flaky):
            with self.assertLogs('xkcd_search.indexer.index_store', level='ERROR') as logs:
                written = self.store.commit_batch(COMICS)

        self.assertEqual(written, 2)
        self.assertEqual(self.store.list_indexed_ids(), {1, 3})
        self.assertTrue(any('comic 2' in line for line in logs.output))

    def test_commit_failure_raises(self):
        writer = mock.MagicMock()
        writer.commit.side_effect = OSError("disk full")
        with mock.patch.object(self.store.ix, 'writer', return_value=writer):
            with self.assertRaises(BatchCommitError):
                self.store.commit_batch(COMICS)
        writer.cancel.assert_called_once()
        self.assertEqual(self.store.doc_count(), 0)

    def test_query_ranks_best_match_first(self):
        self.store.commit_batch(COMICS)
        hits = self.store.query("petit trees")
        self.assertGreaterEqual(len(hits), 1)
        self.assertEqual(hits[0].number, 2)
        self.assertEqual(hits[0].img, COMICS[1].img)
        self.assertGreater(hits[0].score, 0)

    def test_query_searches_alt_text(self):
        self.store.commit_batch(COMICS)
        hits = self.store.query("prince")
        self.assertEqual([h.number for h in hits], [2])

    def test_query_matches_any_term(self):
        self.store.commit_batch(COMICS)
        hits = self.store.query("barrel island")
        self.assertEqual({h.number for h in hits}, {1, 3})

    def test_query_without_match(self):
        self.store.commit_batch(COMICS)
        self.assertEqual(self.store.query("nonexistent-term"), [])

    def test_single_letter_terms_are_indexed(self):
        self.store.commit_batch([make_comic(1, "A"), make_comic(2, "B"), make_comic(3, "C")])
        self.assertEqual([h.number for h in self.store.query("B")], [2])

    def test_query_syntax_is_not_interpreted(self):
        self.store.commit_batch(COMICS)
        self.assertEqual(self.store.query("*"), [])
        self.assertEqual(self.store.query("id:2"), [])
        self.assertEqual(self.store.query("title:[a TO z]"), [])
        self.assertEqual([h.number for h in self.store.query("NOT barrel")], [1])

    def test_blank_query(self):
        self.store.commit_batch(COMICS)
        self.assertEqual(self.store.query("   "), [])

    def test_query_returns_requested_fields_only(self):
        self.store.commit_batch(COMICS)
        hit = self.store.query("island", fields=("number",))[0]
        self.assertEqual(hit.number, 3)
        self.assertIsNone(hit.img)
        self.assertIsNone(hit.title)
        self.assertIsNone(hit.alt)

    def test_query_failure_raises(self):
        with mock.patch.object(self.store.ix, 'searcher', side_effect=RuntimeError("boom")):
            with self.assertRaises(QueryError):
                self.store.query("island")


if __name__ == '__main__':
    unittest.main()
