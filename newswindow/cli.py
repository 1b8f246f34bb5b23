#!/usr/bin/env python3.13
import argparse
import logging
import sys
from datetime import datetime, timedelta

from newswindow.bookmarks import BookmarkStore
from newswindow.errors import NNTPError, NoResultsError
from newswindow.logging_setup import configure_logging
from newswindow.nntp_client import ENCODING, ERRORS, NNTPClient
from newswindow.retrieval import RetrievalEngine, RetrievalOptions
from newswindow.settings import get_bool_setting, get_int_setting, get_setting, load_env, load_settings
from newswindow.transport import connect

LOGGER = logging.getLogger("newswindow")

EPILOG = """\
Example:
  newswindow --group alt.test --days 1 --latest
"""


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(
        description="Download recent articles from an NNTP newsgroup to standard output.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--server", default=get_setting("NNTP_HOST", settings=settings), help="NNTP server address")
    parser.add_argument("--port", type=int, default=get_int_setting("NNTP_PORT", settings=settings), help="NNTP server port")
    parser.add_argument("--group", default=get_setting("NNTP_GROUP", settings=settings), help="Newsgroup to download from")
    parser.add_argument(
        "--days",
        type=int,
        default=get_int_setting("NNTP_DAYS", settings=settings),
        help="Download articles from last N days (0 for all)",
    )
    parser.add_argument("--user", default=get_setting("NNTP_USER", settings=settings), help="NNTP username")
    parser.add_argument("--pass", dest="password", default=get_setting("NNTP_PASS", settings=settings), help="NNTP password")
    parser.add_argument(
        "--tls",
        action=argparse.BooleanOptionalAction,
        default=get_bool_setting("NNTP_SSL", settings=settings),
        help="Use TLS connection",
    )
    parser.add_argument(
        "--tls-verify",
        action=argparse.BooleanOptionalAction,
        default=get_bool_setting("NNTP_TLS_VERIFY", settings=settings),
        help="Verify the server certificate (off by default)",
    )
    parser.add_argument("--proxy", default=get_setting("NNTP_PROXY", settings=settings), help="SOCKS proxy (e.g., 127.0.0.1:9050)")
    parser.add_argument(
        "--latest",
        action=argparse.BooleanOptionalAction,
        default=get_bool_setting("NNTP_LATEST", settings=settings),
        help="Only fetch articles newer than last run",
    )
    parser.add_argument(
        "--batch",
        type=positive_int,
        default=get_int_setting("NNTP_BATCH", settings=settings),
        help="Maximum batch size for XOVER command",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=get_int_setting("NNTP_TIMEOUT", settings=settings),
        help="Read timeout in seconds",
    )
    parser.add_argument(
        "--state-dir",
        default=get_setting("NEWSWINDOW_STATE_DIR", settings=settings),
        help="Directory holding per-group bookmark files",
    )
    return parser


def write_articles(articles: list[str], stream=None) -> None:
    stream = stream or sys.stdout.buffer
    for article in articles:
        stream.write(article.encode(ENCODING, errors=ERRORS))
    stream.flush()


def run(args: argparse.Namespace) -> int:
    try:
        transport = connect(
            args.server,
            args.port,
            args.tls,
            args.proxy or None,
            verify_tls=args.tls_verify,
        )
    except NNTPError as exc:
        LOGGER.error("Connection failed: %s", exc)
        return 1

    client = NNTPClient(transport)
    try:
        transport.set_deadline(at=datetime.now() + timedelta(seconds=args.timeout))

        try:
            client.greeting()
        except NNTPError as exc:
            LOGGER.error("Server greeting failed: %s", exc)
            return 1

        try:
            client.auth(args.user, args.password)
        except NNTPError as exc:
            LOGGER.error("Authentication failed: %s", exc)
            return 1

        engine = RetrievalEngine(client, BookmarkStore(args.state_dir))
        options = RetrievalOptions(days=args.days, resume=args.latest, batch_size=args.batch)
        try:
            articles = engine.fetch(args.group, options)
        except NoResultsError as exc:
            LOGGER.error("No matching articles in %s: %s", args.group, exc)
            return 1
        except NNTPError as exc:
            LOGGER.error("Error: %s", exc)
            return 1

        write_articles(articles)

        try:
            client.quit()
        except NNTPError as exc:
            LOGGER.debug("QUIT failed: %s", exc)
        return 0
    finally:
        client.close()


def main(argv: list[str] | None = None) -> int:
    load_env()
    configure_logging()
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
