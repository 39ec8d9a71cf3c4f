"""Error codes reported by the etcd v2 keyspace API.

The service embeds a numeric ``errorCode`` in the JSON body of failed
requests. Operations decide which of these codes are an ordinary outcome
(e.g. a missing key on read) and which ones are surfaced as errors.
"""

from __future__ import annotations

from enum import IntEnum


class EtcdErrorCode(IntEnum):
    """Application-level error codes documented by etcd v2."""

    KEY_NOT_FOUND = 100
    TEST_FAILED = 101
    NOT_FILE = 102
    NOT_DIR = 104
    NODE_EXIST = 105
    ROOT_READ_ONLY = 107
    DIR_NOT_EMPTY = 108

    VALUE_REQUIRED = 200
    PREV_VALUE_REQUIRED = 201
    TTL_NAN = 202
    INDEX_NAN = 203
    INVALID_FIELD = 209
    INVALID_FORM = 210

    RAFT_INTERNAL = 300
    LEADER_ELECT = 301

    WATCHER_CLEARED = 400
    EVENT_INDEX_CLEARED = 401

    @classmethod
    def lookup(cls, code: int | None) -> "EtcdErrorCode | None":
        """Return the known member for ``code`` or ``None`` for unknown codes."""

        if code is None:
            return None
        try:
            return cls(code)
        except ValueError:
            return None

    def label(self) -> str:
        """Human readable label for messages and logging."""

        return self.name.replace("_", " ").lower()
