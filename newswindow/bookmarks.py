#!/usr/bin/env python3.13
from __future__ import annotations
import json
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from newswindow.errors import BookmarkIOError

# Timestamps written by other tools may carry nanoseconds.
FRACTION_RE = re.compile(r"(\.\d{6})\d+")


@dataclass
class GroupState:
    last_article: int
    last_fetch: datetime

    def to_dict(self) -> dict:
        return {
            "last_article": self.last_article,
            "last_fetch": self.last_fetch.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> GroupState:
        return cls(
            last_article=int(data["last_article"]),
            last_fetch=parse_timestamp(data.get("last_fetch") or ""),
        )


def parse_timestamp(value: str) -> datetime:
    if not value:
        return datetime.fromtimestamp(0, timezone.utc)
    return datetime.fromisoformat(FRACTION_RE.sub(r"\1", value))


class BookmarkStore:
    """Per-group JSON bookmark files.

    Each file holds a mapping of group name to GroupState. Concurrent runs
    against the same group are not serialized; the last writer wins.
    """

    def __init__(self, directory: str = "."):
        self.directory = directory

    def path_for(self, group: str) -> str:
        return os.path.join(self.directory, f"{group}.json")

    def load(self, group: str) -> dict[str, GroupState]:
        path = self.path_for(group)
        if not os.path.exists(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise BookmarkIOError(f"failed to read state file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise BookmarkIOError(f"failed to read state file {path}: expected an object")
        try:
            return {name: GroupState.from_dict(entry) for name, entry in data.items()}
        except (KeyError, TypeError, ValueError) as exc:
            raise BookmarkIOError(f"failed to read state file {path}: {exc}") from exc

    def save(self, group: str, states: dict[str, GroupState]) -> None:
        path = self.path_for(group)
        tmp_path = f"{path}.tmp"
        payload = {name: state.to_dict() for name, state in states.items()}
        try:
            os.makedirs(self.directory or ".", exist_ok=True)
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
                handle.write("\n")
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise BookmarkIOError(f"failed to write state file {path}: {exc}") from exc
