#!/usr/bin/env python3.13
from __future__ import annotations


class NNTPError(Exception):
    pass


class ConnectError(NNTPError):
    pass


class ReadError(NNTPError):
    pass


class ReadTimeout(ReadError):
    pass


class ProtocolError(NNTPError):
    def __init__(self, response: str, message: str | None = None):
        super().__init__(message or response)
        self.response = response


class AuthError(ProtocolError):
    pass


class ArticleFetchError(NNTPError):
    def __init__(self, article: str, reason: str):
        super().__init__(f"article {article} unavailable: {reason}")
        self.article = article
        self.reason = reason


class NoResultsError(NNTPError):
    pass


class BookmarkIOError(NNTPError):
    pass
