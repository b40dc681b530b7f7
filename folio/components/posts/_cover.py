"""
Cover image resolution.

An ordered chain of strategies. Each looks at the CoverContext and either
returns a url or None ("no match"); the first match wins. The last
strategy always answers with the previously persisted cover, so a cover
that cannot be resolved is preserved rather than nulled.
"""

from __future__ import annotations

from collections.abc import Callable

from .models import CoverContext, CoverResolution

CoverStrategy = Callable[[CoverContext], str | None]


def from_kept(ctx: CoverContext) -> str | None:
    """Requested cover is an image the post already had."""
    if ctx.requested_key is None:
        return None
    for kept in ctx.kept:
        if ctx.requested_key in (kept.key, kept.source_key):
            return kept.existing.url
    return None


def from_promotion_mapping(ctx: CoverContext) -> str | None:
    """Requested cover is a temp upload that was promoted in this edit."""
    if ctx.requested_key is None:
        return None
    promoted = ctx.promoted.get(ctx.requested_key)
    return promoted.canonical_url if promoted else None


def from_promoted_canonical(ctx: CoverContext) -> str | None:
    """Requested cover already names the permanent copy of a promoted upload."""
    if ctx.requested_key is None:
        return None
    for promoted in ctx.promoted.values():
        if promoted.final_key == ctx.requested_key:
            return promoted.canonical_url
    return None


def from_previous(ctx: CoverContext) -> str | None:
    return ctx.previous


COVER_STRATEGIES: tuple[tuple[str, CoverStrategy], ...] = (
    ("kept", from_kept),
    ("promoted", from_promotion_mapping),
    ("promoted_canonical", from_promoted_canonical),
    ("previous", from_previous),
)


def resolve_cover(
    ctx: CoverContext,
    strategies: tuple[tuple[str, CoverStrategy], ...] = COVER_STRATEGIES,
) -> CoverResolution:
    for source, strategy in strategies:
        url = strategy(ctx)
        if url is not None:
            return CoverResolution(url=url, source=source)
    return CoverResolution(url=None, source="none")
