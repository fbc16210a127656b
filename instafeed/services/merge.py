"""Merge remote media with locally owned post metadata."""
from collections.abc import Iterable, Mapping

from instafeed.models.post_meta import PostMeta
from instafeed.schemas.feed import FeedChild, MergedFeedItem, ProductRef, RawMediaItem


def _shape(raw: RawMediaItem, meta: PostMeta | None, display_name: str) -> MergedFeedItem:
    return MergedFeedItem(
        id=raw.id,
        url=raw.media_url,
        thumbnail=raw.thumbnail_url or raw.media_url,
        permalink=raw.permalink,
        caption=raw.caption,
        type=raw.media_type,
        username=raw.username or display_name,
        timestamp=raw.timestamp,
        children=[
            FeedChild(
                id=child.id,
                type=child.media_type,
                url=child.media_url,
                thumbnail=child.thumbnail_url or child.media_url,
            )
            for child in raw.children
        ],
        is_pinned=bool(meta and meta.is_pinned),
        is_hidden=bool(meta and meta.is_hidden),
        products=[ProductRef.model_validate(p) for p in (meta.products if meta else None) or []],
    )


def annotate(
    raw_items: Iterable[RawMediaItem],
    post_metas: Mapping[str, PostMeta],
    display_name: str = "",
) -> list[MergedFeedItem]:
    """Every remote item with its metadata attached, hidden ones included, in remote order."""
    return [_shape(raw, post_metas.get(raw.id), display_name) for raw in raw_items]


def merge(
    raw_items: Iterable[RawMediaItem],
    post_metas: Mapping[str, PostMeta],
    display_name: str,
    *,
    pinned_only: bool = False,
) -> list[MergedFeedItem]:
    """Build the storefront feed.

    Hidden items are dropped, then (with ``pinned_only``) unpinned ones, and
    the survivors are stably partitioned so pinned items come first while
    each group keeps the remote order.
    """
    visible = [item for item in annotate(raw_items, post_metas, display_name) if not item.is_hidden]
    if pinned_only:
        visible = [item for item in visible if item.is_pinned]
    pinned = [item for item in visible if item.is_pinned]
    rest = [item for item in visible if not item.is_pinned]
    return pinned + rest
