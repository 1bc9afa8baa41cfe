"""
cakebot.errors — Ledger Error Taxonomy
=======================================

Two kinds of failure leave the ledger:

* :class:`InvalidArgument` — bad input, detected before any storage access.
* :class:`StorageError` — the database refused or failed; the surrounding
  transaction has already been rolled back.

Running out of cakes, unknown users and the like are *not* errors.  They
come back as ordinary return values so callers can answer politely.
"""

from __future__ import annotations


class CakebotError(Exception):
    """Base class for every error raised by the ledger."""


class InvalidArgument(CakebotError, ValueError):
    """Malformed or out-of-range input (empty ID, unknown kind, bad page…)."""


class StorageError(CakebotError, RuntimeError):
    """The storage engine failed; the transaction was rolled back."""
