# -*- coding: utf-8 -*-
"""Ledger error types.

Malformed *data* never raises; these cover abandoned writes and programmer
errors only.
"""

from __future__ import annotations


class LedgerError(Exception):
    pass


class BucketWriteError(LedgerError):
    """A bucket could not be serialized; the persisted value was left as it was."""

    def __init__(self, bucket: str, reason: str) -> None:
        super().__init__(f"Failed to write bucket {bucket!r}: {reason}")
        self.bucket = bucket
        self.reason = reason


class UnknownBucketError(LedgerError, KeyError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown record kind: {kind!r}")
        self.kind = kind

    def __str__(self) -> str:
        return str(self.args[0])
