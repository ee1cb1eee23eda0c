"""
YouTube Data API v3 Client

Read-only access to channels, playlists and playlist items.
Each call is a single request; failures are raised as FetchError.
"""

import logging
from typing import Callable, TypeVar

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.enumerator import PAGE_SIZE, PLAYLIST_LIMIT
from core.models import FetchError, PlaylistItem, PlaylistItemPage, PlaylistRef

logger = logging.getLogger(__name__)

T = TypeVar('T')


class YouTubeClient:
    """YouTube Data API client for channel playlists."""

    def __init__(self, credentials: Credentials | None = None, service=None):
        if service is None:
            service = build("youtube", "v3", credentials=credentials, cache_discovery=False)
        self._service = service
        logger.debug("YouTube client initialized")

    def _execute(self, operation: Callable[[], T], name: str) -> T:
        """Run one API request, translating failures to FetchError."""
        try:
            return operation()
        except HttpError as e:
            status = e.resp.status if e.resp else 0
            raise FetchError(f"API error on {name} (HTTP {status}): {e}") from e
        except GoogleAuthError as e:
            raise FetchError(f"Authorization failed on {name}: {e}") from e
        except (httplib2.HttpLib2Error, OSError) as e:
            raise FetchError(f"Network error on {name}: {e}") from e

    def get_channel_ids(self, username: str) -> list[str]:
        """Ids of the channels registered under a legacy username."""
        def do_list():
            return self._service.channels().list(
                part="snippet,contentDetails",
                forUsername=username
            ).execute()

        response = self._execute(do_list, f"channel lookup '{username}'")
        return [item["id"] for item in response.get("items", []) if item.get("id")]

    def get_playlists(self, channel_id: str, max_results: int = PLAYLIST_LIMIT) -> list[PlaylistRef]:
        """First page of a channel's playlists, in API order."""
        def do_list():
            return self._service.playlists().list(
                part="snippet,contentDetails",
                channelId=channel_id,
                maxResults=max_results
            ).execute()

        response = self._execute(do_list, f"list playlists of {channel_id}")
        if response.get("nextPageToken"):
            logger.debug(f"Channel {channel_id} has more than {max_results} playlists, "
                         "only the first page is exported")

        playlists = []
        for item in response.get("items", []):
            snippet = item.get("snippet", {})
            content = item.get("contentDetails", {})
            playlists.append(PlaylistRef(
                id=item.get("id", ""),
                title=snippet.get("title", ""),
                item_count=int(content.get("itemCount", 0))
            ))
        return playlists

    def get_playlist_items_page(self, playlist_id: str, page_token: str | None = None,
                                max_results: int = PAGE_SIZE) -> PlaylistItemPage:
        """Fetch one page of playlist items starting at ``page_token``."""
        def do_list():
            return self._service.playlistItems().list(
                part="snippet",
                playlistId=playlist_id,
                maxResults=max_results,
                pageToken=page_token
            ).execute()

        response = self._execute(do_list, f"list playlist {playlist_id}")
        items = [self._extract_item(item) for item in response.get("items", [])]
        return PlaylistItemPage(
            items=items,
            next_page_token=response.get("nextPageToken") or None
        )

    def _extract_item(self, item: dict) -> PlaylistItem:
        """Extract PlaylistItem from API response."""
        snippet = item.get("snippet", {})
        resource = snippet.get("resourceId", {})

        return PlaylistItem(
            video_id=resource.get("videoId", ""),
            title=snippet.get("title", ""),
            published_at=snippet.get("publishedAt", ""),
            position=snippet.get("position", 0),
            owner_channel_title=snippet.get("videoOwnerChannelTitle", ""),
            owner_channel_id=snippet.get("videoOwnerChannelId", "")
        )
