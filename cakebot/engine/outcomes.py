"""
cakebot.engine.outcomes — Throw Outcome Selection
==================================================

Pure calculation, no Discord I/O and no DB I/O.

A throw lands on one :class:`CakeOutcome` picked at random, weighted by
``weight``.  The outcome decides the point delta handed to the ledger and
the flavour text shown to the channel.  Message templates use ``%a`` for
the thrower and ``%b`` for the target.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

from cakebot.constants import format_points
from cakebot.errors import InvalidArgument

__all__ = [
    "CakeOutcome",
    "parse_outcome",
    "render_throw_message",
    "weighted_choice",
]


@dataclass(frozen=True, slots=True)
class CakeOutcome:
    """One possible result of a cake throw."""

    title: str
    value: int
    weight: float
    messages: tuple[str, ...]


def parse_outcome(raw: dict) -> CakeOutcome:
    """Build a :class:`CakeOutcome` from a ``config.yaml`` mapping.

    Raises
    ------
    KeyError
        If ``title`` or ``value`` is missing.
    InvalidArgument
        If the weight is not positive or there are no messages.
    """
    weight = float(raw.get("weight", 1))
    if weight <= 0:
        raise InvalidArgument(f"Outcome {raw.get('title')!r} needs a positive weight")
    messages = tuple(str(m) for m in raw.get("messages") or ())
    if not messages:
        raise InvalidArgument(f"Outcome {raw.get('title')!r} has no messages")
    return CakeOutcome(
        title=str(raw["title"]),
        value=int(raw["value"]),
        weight=weight,
        messages=messages,
    )


def weighted_choice(
    outcomes: Sequence[CakeOutcome],
    rng: random.Random | None = None,
) -> CakeOutcome:
    """Pick one outcome with probability proportional to its weight."""
    if not outcomes:
        raise InvalidArgument("At least one outcome is required")
    rng = rng or random.Random()
    total = sum(o.weight for o in outcomes)
    r = rng.random() * total
    for outcome in outcomes:
        if r < outcome.weight:
            return outcome
        r -= outcome.weight
    # Float rounding can leave a sliver past the last bucket
    return outcomes[-1]


def render_throw_message(
    outcome: CakeOutcome,
    thrower: str,
    target: str,
    *,
    first_throw: bool = False,
    rng: random.Random | None = None,
) -> str:
    """Build the embed body for a successful throw."""
    rng = rng or random.Random()
    template = rng.choice(outcome.messages)
    body = template.replace("%a", f"**{thrower}**").replace("%b", f"**{target}**")
    prefix = f"This is **{thrower}**'s first cake throw in this server!\n" if first_throw else ""
    return f"{prefix}{body}\n{format_points(outcome.value)}"
