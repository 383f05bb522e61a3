"""Seed markets used when no snapshot exists."""

from __future__ import annotations

import random
from datetime import date

from predsim.models import Category, HistoryPoint, Market, Outcome
from predsim.models.market import NO, YES, now_ms

DAY_MS = 24 * 60 * 60 * 1000

# (id, question, description, category, volume, end_date, yes_name, no_name, yes_price, history_lo, history_span)
_SEED = [
    (
        "1",
        "Will Bitcoin hit $150k in 2025?",
        'This market resolves to "Yes" if the price of Bitcoin hits $150,000.00 USD or greater '
        "on Coinbase before January 1, 2026, 11:59:59 PM ET.",
        Category.CRYPTO,
        18_420_000,
        date(2025, 12, 31),
        "Yes",
        "No",
        0.32,
        0.2,
        0.2,
    ),
    (
        "2",
        "Will the US Federal Reserve cut interest rates in Q3 2025?",
        "This market resolves based on the official announcement from the FOMC meeting regarding "
        "the Federal Funds Rate in Q3 2025.",
        Category.BUSINESS,
        8_500_000,
        date(2025, 9, 30),
        "Yes",
        "No",
        0.75,
        0.6,
        0.2,
    ),
    (
        "3",
        "Will a human land on Mars before 2030?",
        "Resolves to Yes if a human sets foot on the surface of Mars before Jan 1, 2030.",
        Category.POP_CULTURE,
        230_000,
        date(2029, 12, 31),
        "Yes",
        "No",
        0.05,
        0.04,
        0.03,
    ),
    (
        "4",
        "Who will win the 2025 NBA Championship?",
        "This market generally tracks the NBA finals winner for the 2024-2025 season.",
        Category.SPORTS,
        4_500_000,
        date(2025, 6, 20),
        "Celtics",
        "Others",
        0.40,
        0.4,
        0.4,
    ),
    (
        "5",
        "Will GPT-6 be released before 2026?",
        "Resolves yes if OpenAI releases a model explicitly named GPT-6 or equivalent successor to GPT-5.",
        Category.BUSINESS,
        1_200_000,
        date(2025, 12, 31),
        "Yes",
        "No",
        0.45,
        0.3,
        0.3,
    ),
]


def seed_markets(now: int | None = None, history_days: int = 30, rng: random.Random | None = None) -> list[Market]:
    """Return the default markets with `history_days` daily history points ending today."""
    now = now if now is not None else now_ms()
    rng = rng or random.Random(42)
    markets = []
    for i, (market_id, question, description, category, volume, end_date, yes_name, no_name, yes_price, lo, span) in enumerate(_SEED):
        history = [
            HistoryPoint(
                timestamp=now - (history_days - 1 - d) * DAY_MS,
                price=round(lo + rng.random() * span, 4),
            )
            for d in range(history_days)
        ]
        markets.append(
            Market(
                market_id=market_id,
                question=question,
                description=description,
                category=category,
                image=f"https://picsum.photos/200/200?random={market_id}",
                volume=float(volume),
                end_date=end_date,
                # Higher id is newer
                created_at=now - (len(_SEED) - i) * DAY_MS,
                outcomes=[
                    Outcome(outcome_id=YES, name=yes_name, price=yes_price),
                    Outcome(outcome_id=NO, name=no_name, price=1 - yes_price),
                ],
                history=history,
            )
        )
    return markets
