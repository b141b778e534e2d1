"""Deduplicating merge of fresh and previously stored messages."""

from typing import Iterable

from src.slack.models import Update


def merge(fresh: Iterable[Update], persisted: Iterable[Update]) -> list[Update]:
    """Combine fetched and stored updates, dropping duplicate timestamps.

    Fresh updates come first and win: for any ``ts`` present in both
    inputs, the fetched copy is kept. Within each input the first
    occurrence wins. Relative order of first-seen occurrences is kept.

    Args:
        fresh: Updates fetched this run.
        persisted: Updates loaded from the trailing storage window.

    Returns:
        Updates with each ``ts`` at most once.
    """
    seen: set[str] = set()
    merged: list[Update] = []

    for source in (fresh, persisted):
        for update in source:
            if update.ts in seen:
                continue
            seen.add(update.ts)
            merged.append(update)

    return merged
