"""
Search interface for the xkcd search tool.
Provides both a command-line interface and a JSON web API over the index.
"""
import argparse
import logging
import sys
import threading
from datetime import datetime

from flask import Flask, jsonify, request

from xkcd_search.common.config import (
    DEFAULT_RATE_INTERVAL, LOG_FORMAT, LOGGER_NAME, SearchConfig
)
from xkcd_search.common.errors import XKCDSearchError
from xkcd_search.common.utils import comic_page_url, parse_duration, setup_logging
from xkcd_search.master.orchestrator import XKCDSearch
from xkcd_search.search.resolver import NOT_FOUND

logger = logging.getLogger(__name__)


def format_comic_for_cli(hit, base_url="https://xkcd.com"):
    """Format the best match for command-line display."""
    if hit is None:
        return NOT_FOUND
    return "\n".join([
        f"Title    : {hit.title}",
        f"Number   : {hit.number}",
        f"URL      : {comic_page_url(hit.number, base_url)}",
        f"ImageURL : {hit.img}",
        f"Alt      : {hit.alt}",
    ])


def format_update_report(report):
    return (
        f"Index has {report.already_indexed + report.indexed} comics "
        f"(latest is {report.latest}): requested {report.requested}, "
        f"fetched {report.fetched}, indexed {report.indexed}"
    )


def _hit_to_dict(hit, base_url):
    return {
        'number': hit.number,
        'title': hit.title,
        'alt': hit.alt,
        'img': hit.img,
        'url': comic_page_url(hit.number, base_url),
        'score': hit.score,
    }


def create_app(searcher):
    """Create the Flask app serving the JSON API for searcher."""
    app = Flask(__name__)
    # one update at a time: a search may trigger the first update
    lock = threading.Lock()

    @app.route('/api/search', methods=['GET', 'POST'])
    def search_api():
        """API endpoint for search."""
        if request.method == 'POST':
            data = request.get_json(silent=True) or {}
            if not isinstance(data, dict):
                return jsonify({'error': 'Request body must be a JSON object'}), 400
            query = data.get('query', '')
        else:
            query = request.args.get('q', '')
        if not isinstance(query, str):
            return jsonify({'error': 'Query must be a string'}), 400
        query = query.strip()

        if not query:
            return jsonify({'error': 'No query provided'}), 400

        try:
            with lock:
                hit = searcher.lookup(query)
        except XKCDSearchError as e:
            logger.error(f"Search for '{query}' failed: {e}")
            return jsonify({'error': str(e)}), 500

        base_url = searcher.config.base_url
        return jsonify({
            'query': query,
            'result': hit.img if hit else NOT_FOUND,
            'comic': _hit_to_dict(hit, base_url) if hit else None,
            'timestamp': datetime.now().isoformat(),
        })

    @app.route('/api/update', methods=['POST'])
    def update_api():
        """API endpoint to refresh the index."""
        try:
            with lock:
                report = searcher.update()
        except XKCDSearchError as e:
            logger.error(f"Update failed: {e}")
            return jsonify({'error': str(e)}), 500
        response = report.to_dict()
        response['timestamp'] = datetime.now().isoformat()
        return jsonify(response)

    return app


def start_web_interface(searcher, host='127.0.0.1', port=5000):
    """Start the web interface."""
    app = create_app(searcher)
    logger.info(f"Starting web interface on http://{host}:{port}")
    app.run(host=host, port=port)


def _duration(value):
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser():
    parser = argparse.ArgumentParser(description='Search xkcd comics by title, alt text and transcript')
    parser.add_argument('terms', nargs='*', help='Search terms')
    parser.add_argument('-c', '--cachedir', default='',
                        help='Cache directory where the index is stored')
    parser.add_argument('-l', '--rate-limit', type=_duration, default=DEFAULT_RATE_INTERVAL,
                        help='Minimum interval between comic fetches during an update, '
                             'expressed as a duration string (e.g. 10ms)')
    parser.add_argument('--update', action='store_true', help='Update the index before searching')
    parser.add_argument('--web', action='store_true', help='Serve the JSON API instead of searching')
    parser.add_argument('--host', default='127.0.0.1', help='Host for the web interface')
    parser.add_argument('--port', type=int, default=5000, help='Port for the web interface')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--log-file', help='Also write logs to this file')
    return parser


def main(argv=None):
    """Main function to run the search interface."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.terms and not (args.update or args.web):
        parser.error("No search term specified")

    setup_logging(verbose=args.verbose, log_file=args.log_file, log_format=LOG_FORMAT)
    config = SearchConfig(
        index_dir=args.cachedir or None,
        rate_interval=args.rate_limit,
        logger=logging.getLogger(LOGGER_NAME),
    )
    searcher = XKCDSearch(config)
    try:
        if args.web:
            start_web_interface(searcher, host=args.host, port=args.port)
            return 0
        if args.update:
            report = searcher.update()
            print(format_update_report(report))
        if args.terms:
            hit = searcher.lookup(' '.join(args.terms))
            print(format_comic_for_cli(hit, config.base_url))
    except XKCDSearchError as e:
        logger.error(str(e))
        return 1
    finally:
        searcher.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
