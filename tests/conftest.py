import pytest

from core.models import FetchError, PlaylistItem, PlaylistItemPage, PlaylistRef


class FakeYouTube:
    """In-memory stand-in for YouTubeClient that records every call."""

    def __init__(self, channel_ids=None, playlists=None, pages=None, fail_on=None):
        self.channel_ids = channel_ids if channel_ids is not None else ["UC123"]
        self.playlists = playlists or []
        # playlist_id -> {page_token: PlaylistItemPage}
        self.pages = pages or {}
        # (playlist_id, page_token) that raises FetchError
        self.fail_on = fail_on
        self.calls = []

    def get_channel_ids(self, username):
        self.calls.append(("channels", username))
        return self.channel_ids

    def get_playlists(self, channel_id, max_results=25):
        self.calls.append(("playlists", channel_id, max_results))
        return self.playlists

    def get_playlist_items_page(self, playlist_id, page_token=None, max_results=50):
        self.calls.append(("items", playlist_id, page_token))
        if self.fail_on == (playlist_id, page_token):
            raise FetchError(f"API error on list playlist {playlist_id}")
        return self.pages[playlist_id][page_token]


class ListSink:
    def __init__(self):
        self.records = []

    def accept(self, record):
        self.records.append(record)


def make_items(count, start=0, prefix="vid"):
    return [
        PlaylistItem(
            video_id=f"{prefix}{i}",
            title=f"Track {i}",
            published_at="2021-01-01T00:00:00Z",
            position=i,
            owner_channel_title="Owner",
            owner_channel_id="UCowner"
        )
        for i in range(start, start + count)
    ]


def single_page(playlist_id, count=2):
    return {None: PlaylistItemPage(items=make_items(count, prefix=f"{playlist_id}-"))}


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def playlist():
    return PlaylistRef(id="PL1", title="Road trip", item_count=107)
