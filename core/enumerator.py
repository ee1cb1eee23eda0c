"""
Playlist Enumerator

Walks every playlist of a channel and produces one TrackRecord per item.

Flow:
1. Resolve the channel username to a channel id (no match = error)
2. List the channel's playlists (single request, first 25 only)
3. Skip the platform-generated "Favorites" playlist
4. Page through each playlist's items, following nextPageToken until
   the API stops returning one

Everything runs sequentially. Each page request depends on the cursor of
the previous one, and any failed request aborts the whole run.

Quota costs:
- channels.list: 1 unit
- playlists.list: 1 unit
- playlistItems.list: 1 unit per page of 50
"""

import logging
import time
from typing import Iterator, Protocol

from core.models import (
    ChannelNotFoundError,
    ExportResult,
    PlaylistItemPage,
    PlaylistRef,
    TrackRecord,
)

logger = logging.getLogger(__name__)

FAVORITES_TITLE = "Favorites"
PLAYLIST_LIMIT = 25
PAGE_SIZE = 50


class YouTubeClientProtocol(Protocol):
    def get_channel_ids(self, username: str) -> list[str]: ...
    def get_playlists(self, channel_id: str, max_results: int) -> list[PlaylistRef]: ...
    def get_playlist_items_page(self, playlist_id: str, page_token: str | None,
                                max_results: int) -> PlaylistItemPage: ...


class TrackSink(Protocol):
    def accept(self, record: TrackRecord) -> None: ...


class PlaylistEnumerator:
    """Produces the track records of every playlist owned by a channel."""

    def __init__(self, youtube: YouTubeClientProtocol,
                 playlist_limit: int = PLAYLIST_LIMIT, page_size: int = PAGE_SIZE):
        self._youtube = youtube
        self._playlist_limit = playlist_limit
        self._page_size = page_size

    def resolve_channel(self, username: str) -> str:
        channel_ids = self._youtube.get_channel_ids(username)
        if not channel_ids:
            raise ChannelNotFoundError(f"incorrect userName: no channel found for '{username}'")
        return channel_ids[0]

    def get_playlists(self, channel_id: str) -> list[PlaylistRef]:
        """Channel playlists in API order, without "Favorites"."""
        playlists = self._youtube.get_playlists(channel_id, self._playlist_limit)
        return [p for p in playlists if p.title != FAVORITES_TITLE]

    def iter_playlist_tracks(self, playlist: PlaylistRef) -> Iterator[TrackRecord]:
        """Yield a playlist's records page by page, in fetch order."""
        page_token = None
        pages = 0

        while True:
            page = self._youtube.get_playlist_items_page(playlist.id, page_token, self._page_size)
            pages += 1

            for item in page.items:
                yield TrackRecord.from_item(playlist, item)

            page_token = page.next_page_token
            if not page_token:
                break

        logger.debug(f"Playlist {playlist.id}: {pages} page(s)")

    def iter_tracks(self, username: str) -> Iterator[TrackRecord]:
        """Lazily yield the records of every playlist of ``username``'s channel."""
        for playlist in self._iter_playlists(username):
            yield from self.iter_playlist_tracks(playlist)

    def _iter_playlists(self, username: str) -> Iterator[PlaylistRef]:
        channel_id = self.resolve_channel(username)
        playlists = self.get_playlists(channel_id)
        logger.info(f"Channel {channel_id}: {len(playlists)} playlists")

        for playlist in playlists:
            logger.info(f"{playlist.title} {playlist.item_count}")
            yield playlist

    def export(self, username: str, sink: TrackSink) -> ExportResult:
        """Hand every record to ``sink``, one at a time. Returns a summary."""
        start = time.time()
        playlists = tracks = 0

        for playlist in self._iter_playlists(username):
            playlists += 1
            for record in self.iter_playlist_tracks(playlist):
                sink.accept(record)
                tracks += 1

        duration = time.time() - start
        logger.debug(f"Exported {tracks} tracks from {playlists} playlists")
        return ExportResult(playlists=playlists, tracks=tracks, duration=duration)
