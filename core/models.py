"""Data models and errors for playlist export."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List


class ExportError(Exception):
    """Base class for every error that ends an export run."""
    pass


class ConfigError(ExportError):
    """Missing or unreadable configuration or credential file."""
    pass


class AuthError(ExportError):
    """OAuth token could not be obtained or cached."""
    pass


class ChannelNotFoundError(ExportError, LookupError):
    """No channel matches the requested username."""
    pass


class FetchError(ExportError):
    """A YouTube API list call failed."""
    pass


class SinkError(ExportError):
    """A track record could not be written."""
    pass


@dataclass
class Token:
    """OAuth2 token as stored in the cache file."""
    access_token: str
    refresh_token: str = ""
    token_type: str = "Bearer"
    expiry: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.isoformat() if self.expiry else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Token":
        """Build a Token from its JSON form. Raises ValueError on bad data."""
        if not isinstance(data, dict):
            raise ValueError("token must be a JSON object")
        access_token = data.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise ValueError("token has no access_token")

        expiry = data.get("expiry")
        if expiry:
            expiry = datetime.fromisoformat(expiry)
            if expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)
        else:
            expiry = None

        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or "",
            token_type=data.get("token_type") or "Bearer",
            expiry=expiry
        )


@dataclass
class PlaylistRef:
    """A playlist owned by the channel."""
    id: str
    title: str
    item_count: int = 0


@dataclass
class PlaylistItem:
    """An item from a YouTube playlist page."""
    video_id: str
    title: str
    published_at: str = ""
    position: int = 0
    owner_channel_title: str = ""
    owner_channel_id: str = ""


@dataclass
class PlaylistItemPage:
    """One page of playlist items and the cursor for the next one."""
    items: List[PlaylistItem] = field(default_factory=list)
    next_page_token: str | None = None


@dataclass(frozen=True)
class TrackRecord:
    """A playlist item flattened together with its playlist."""
    playlist_title: str
    playlist_id: str
    video_id: str
    track_title: str
    published_at: str
    position: int
    video_owner_channel_title: str
    video_owner_channel_id: str

    @classmethod
    def from_item(cls, playlist: PlaylistRef, item: PlaylistItem) -> "TrackRecord":
        return cls(
            playlist_title=playlist.title,
            playlist_id=playlist.id,
            video_id=item.video_id,
            track_title=item.title,
            published_at=item.published_at,
            position=item.position,
            video_owner_channel_title=item.owner_channel_title,
            video_owner_channel_id=item.owner_channel_id
        )


@dataclass
class ExportResult:
    """Summary of a finished export."""
    playlists: int
    tracks: int
    duration: float
