#!/usr/bin/env python3.13
"""Batched retrieval of a window of articles from one newsgroup.

The engine selects the group, narrows the article range to what has not been
seen yet (when resuming), walks the range in XOVER batches, drops articles
older than the age cutoff and fetches every survivor with ARTICLE. The
bookmark for the group is advanced after each batch so an interrupted run
resumes close to where it stopped.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Iterator, Optional

from newswindow.bookmarks import BookmarkStore, GroupState
from newswindow.errors import (
    ArticleFetchError,
    BookmarkIOError,
    NoResultsError,
    ProtocolError,
    ReadError,
    ReadTimeout,
)
from newswindow.nntp_client import NNTPClient, NNTPOverviewEntry, overview_date

LOGGER = logging.getLogger("newswindow.retrieval")


@dataclass
class RetrievalOptions:
    days: int = 1
    resume: bool = False
    batch_size: int = 500


def iter_batches(first: int, last: int, size: int) -> Iterator[tuple[int, int]]:
    start = first
    while start <= last:
        end = min(start + size - 1, last)
        yield start, end
        start = end + 1


def resume_start(first: int, last: int, saved: int) -> Optional[int]:
    """Return the first article to fetch given the saved position.

    ``None`` means everything up to ``last`` was already seen. A saved
    position outside the current range (group purged or renumbered) leaves
    ``first`` untouched.
    """
    if saved >= last:
        return None
    if first <= saved < last:
        return saved + 1
    return first


def parse_article_date(value: str) -> Optional[datetime]:
    value = value.strip()
    idx = value.find(" (")
    if idx > 0:
        value = value[:idx]
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def filter_recent(entries: list[NNTPOverviewEntry], cutoff: Optional[datetime]) -> list[str]:
    if cutoff is None:
        return [number for number, _ in entries]
    numbers = []
    for number, overview in entries:
        date = parse_article_date(overview_date(overview))
        if date is None or date < cutoff:
            continue
        numbers.append(number)
    return numbers


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RetrievalEngine:
    def __init__(
        self,
        client: NNTPClient,
        bookmarks: BookmarkStore,
        *,
        now: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.bookmarks = bookmarks
        self.now = now or _utcnow
        self.states: dict[str, GroupState] = {}

    def _load_states(self, group: str) -> None:
        try:
            self.states = self.bookmarks.load(group)
        except BookmarkIOError as exc:
            LOGGER.warning("Failed to load state: %s", exc)
            self.states = {}

    def _save_state(self, group: str, last_article: int) -> None:
        self.states[group] = GroupState(last_article=last_article, last_fetch=self.now())
        try:
            self.bookmarks.save(group, self.states)
        except BookmarkIOError as exc:
            LOGGER.warning("Failed to save state: %s", exc)

    def _fetch_article(self, number: str) -> str:
        try:
            return self.client.article(number)
        except ReadTimeout:
            raise
        except (ProtocolError, ReadError) as exc:
            raise ArticleFetchError(number, str(exc)) from exc

    def _fetch_batch(self, numbers: list[str]) -> list[str]:
        articles = []
        for number in numbers:
            try:
                articles.append(self._fetch_article(number))
            except ArticleFetchError as exc:
                LOGGER.warning("%s", exc)
        return articles

    def fetch(self, group: str, options: RetrievalOptions) -> list[str]:
        _, first, last, _ = self.client.group(group)

        if options.resume:
            self._load_states(group)
            saved = self.states.get(group)
            if saved is not None:
                start = resume_start(first, last, saved.last_article)
                if start is None:
                    LOGGER.info(
                        "No new articles available since last fetch (last article: %d)",
                        saved.last_article,
                    )
                    return []
                if start != first:
                    LOGGER.info("Resuming from article %d (last fetched was %d)", start, saved.last_article)
                first = start

        cutoff = None
        if options.days > 0:
            cutoff = self.now() - timedelta(days=options.days)

        articles: list[str] = []
        for start, end in iter_batches(first, last, options.batch_size):
            LOGGER.debug("Listing %s articles %d-%d", group, start, end)
            numbers = filter_recent(self.client.xover(start, end), cutoff)
            articles.extend(self._fetch_batch(numbers))
            if options.resume and end > first:
                self._save_state(group, end)

        if not articles:
            raise NoResultsError("no articles found matching criteria")
        return articles
