import unittest
from unittest.mock import MagicMock

import requests

from xkcd_search.client.xkcd_client import Comic, XKCDClient
from xkcd_search.common.errors import ComicNotFoundError

PAYLOAD = {
    "month": "1",
    "num": 2,
    "link": "",
    "year": "2006",
    "news": "",
    "safe_title": "Petit Trees (sketch)",
    "transcript": "[[Two trees are growing on opposite sides of a sphere.]]",
    "alt": "'Petit' being a reference to Le Petit Prince",
    "img": "https://imgs.xkcd.com/comics/tree_cropped_(1).jpg",
    "title": "Petit Trees (sketch)",
    "day": "1",
}


def _response(payload=None, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error", response=response)
    return response


class TestComic(unittest.TestCase):
    def test_from_json(self):
        comic = Comic.from_json(PAYLOAD)
        self.assertEqual(comic.num, 2)
        self.assertEqual(comic.title, "Petit Trees (sketch)")
        self.assertEqual(comic.img, PAYLOAD["img"])
        self.assertEqual(comic.year, 2006)
        self.assertEqual(comic.published, "2006-01-01")

    def test_from_json_with_missing_fields(self):
        comic = Comic.from_json({"num": 7, "title": "Girl sleeping"})
        self.assertEqual(comic.alt, "")
        self.assertEqual(comic.img, "")
        self.assertIsNone(comic.year)
        self.assertEqual(comic.published, "")

    def test_from_json_without_number(self):
        with self.assertRaises(KeyError):
            Comic.from_json({"title": "no number"})


class TestXKCDClient(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.client = XKCDClient(base_url="https://xkcd.test/", session=self.session)

    def test_latest(self):
        self.session.get.return_value = _response(PAYLOAD)
        comic = self.client.latest()
        self.assertEqual(comic.num, 2)
        url = self.session.get.call_args[0][0]
        self.assertEqual(url, "https://xkcd.test/info.0.json")

    def test_get(self):
        self.session.get.return_value = _response(PAYLOAD)
        comic = self.client.get(2)
        self.assertEqual(comic.title, "Petit Trees (sketch)")
        url = self.session.get.call_args[0][0]
        self.assertEqual(url, "https://xkcd.test/2/info.0.json")
        self.assertEqual(self.session.get.call_args[1]["timeout"], self.client.timeout)

    def test_get_not_found(self):
        self.session.get.return_value = _response(status=404)
        with self.assertRaises(ComicNotFoundError) as ctx:
            self.client.get(404)
        self.assertEqual(ctx.exception.num, 404)

    def test_get_server_error_propagates(self):
        self.session.get.return_value = _response(status=503)
        with self.assertRaises(requests.HTTPError):
            self.client.get(5)

    def test_network_error_propagates(self):
        self.session.get.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(requests.ConnectionError):
            self.client.latest()


if __name__ == '__main__':
    unittest.main()
