#!/usr/bin/env python3.13
from __future__ import annotations
from typing import NamedTuple

from newswindow.errors import AuthError, ProtocolError, ReadError

ENCODING = "utf-8"
ERRORS = "surrogateescape"
OVERVIEW_MIN_FIELDS = 8
OVERVIEW_DATE_FIELD = 3

type NNTPOverview = list[str]
type NNTPOverviewEntry = tuple[str, NNTPOverview]


class StatusLine(NamedTuple):
    code: str
    text: str
    raw: str


class NNTPClient:
    def __init__(self, transport):
        self.file = transport

    def __enter__(self) -> NNTPClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self.file:
            self.file.close()
            self.file = None

    def _readline_raw(self) -> str:
        if not self.file:
            raise ReadError("Not connected")
        line = self.file.readline()
        if not line:
            raise ReadError("Connection closed")
        if not line.endswith(b"\n"):
            raise ReadError("Connection closed mid-line")
        return line.decode(ENCODING, errors=ERRORS)

    def _write(self, line: str) -> None:
        if not self.file:
            raise ReadError("Not connected")
        payload = f"{line}\r\n".encode(ENCODING, errors=ERRORS)
        self.file.write(payload)

    def _read_status(self) -> StatusLine:
        raw = self._readline_raw()
        line = raw.strip()
        if len(line) < 3 or not line[:3].isdigit():
            raise ProtocolError(line, f"Invalid response: {line}")
        return StatusLine(line[:3], line[3:].strip(), raw)

    def _expect(self, ok_prefixes: tuple[str, ...], error=ProtocolError) -> StatusLine:
        status = self._read_status()
        if not status.raw.startswith(ok_prefixes):
            raise error(status.raw.strip())
        return status

    def command(self, line: str, ok_prefixes: tuple[str, ...] = ("2", "3"), error=ProtocolError) -> StatusLine:
        self._write(line)
        return self._expect(ok_prefixes, error)

    def _read_multiline(self, keepends: bool = False) -> list[str]:
        lines = []
        while True:
            raw = self._readline_raw()
            line = raw.rstrip("\r\n")
            if line == ".":
                break
            if keepends:
                line = raw
            if line.startswith(".."):
                line = line[1:]
            lines.append(line)
        return lines

    def greeting(self) -> StatusLine:
        return self._read_status()

    def auth(self, user: str, password: str) -> None:
        if not user:
            return
        self.command(f"AUTHINFO USER {user}", ok_prefixes=("381",), error=AuthError)
        self.command(f"AUTHINFO PASS {password or ''}", ok_prefixes=("281",), error=AuthError)

    def group(self, group: str) -> tuple[int, int, int, str]:
        status = self.command(f"GROUP {group}", ok_prefixes=("211 ",))
        # 211 count first last group
        parts = status.raw.split()
        if len(parts) < 4:
            raise ProtocolError(status.raw.strip(), f"invalid group response: {status.raw.strip()}")
        count = int(parts[1]) if parts[1].isdigit() else 0
        try:
            first, last = int(parts[2]), int(parts[3])
        except ValueError:
            raise ProtocolError(status.raw.strip(), f"invalid article range: {status.raw.strip()}") from None
        name = parts[4] if len(parts) > 4 else group
        return count, first, last, name

    def xover(self, start: int, end: int) -> list[NNTPOverviewEntry]:
        self.command(f"XOVER {start}-{end}", ok_prefixes=("224 ",))
        results = []
        for line in self._read_multiline():
            parts = line.split("\t")
            if len(parts) < OVERVIEW_MIN_FIELDS:
                continue
            results.append((parts[0], parts))
        return results

    def article(self, article) -> str:
        status = self.command(f"ARTICLE {article}", ok_prefixes=("220 ",))
        body = self._read_multiline(keepends=True)
        return "".join([status.raw, *body, ".\r\n"])

    def quit(self) -> None:
        try:
            self.command("QUIT", ok_prefixes=("2",))
        finally:
            self.close()


def overview_date(overview: NNTPOverview) -> str:
    return overview[OVERVIEW_DATE_FIELD] if len(overview) > OVERVIEW_DATE_FIELD else ""
