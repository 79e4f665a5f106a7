import asyncio
from datetime import datetime, timezone

import pytest

from frequency.client.identity import IdentityContext
from frequency.client.projections import FriendSearch, FriendsProjection, PlaylistsProjection
from frequency.client.realtime import RealtimeListener
from frequency.schemas.friendship import FriendEdge, FriendsList
from frequency.schemas.playlist import Playlist
from frequency.schemas.realtime import ChangeEvent, ChangeNotification, Table
from frequency.schemas.user import ProfileSummary
from frequency.utils.exceptions import (
    AlreadySharedError,
    DuplicateEdgeError,
    DuplicateTrackError,
    NotAuthenticated,
    StoreError
)


def edge(edge_id, requester, recipient, status="accepted"):
    return FriendEdge(
        id=edge_id,
        user_id=requester,
        friend_id=recipient,
        status=status,
        counterpart_id=requester if recipient == "me" else recipient
    )


def playlist(playlist_id, owner="me"):
    return Playlist(id=playlist_id, user_id=owner, name=f"Playlist {playlist_id}", is_public=False)


def notification(table):
    return ChangeNotification(
        table=table,
        event=ChangeEvent.UPDATE,
        record_id="1",
        timestamp=datetime.now(timezone.utc)
    )


class FakeClient:
    """Scripted stand-in for FrequencyClient"""

    def __init__(self):
        self.friends = FriendsList(accepted=[], pending_incoming=[])
        self.owned = []
        self.shared = []
        self.errors = {}
        self.calls = []
        self.search_results = []

    async def _call(self, name, result=None):
        self.calls.append(name)
        error = self.errors.get(name)
        if error is not None:
            raise error
        return result

    async def list_friends(self):
        return await self._call("list_friends", self.friends)

    async def send_friend_request(self, friend_id):
        return await self._call("send_friend_request")

    async def accept_friend_request(self, edge_id):
        return await self._call("accept_friend_request")

    async def reject_friend_request(self, edge_id):
        return await self._call("reject_friend_request")

    async def remove_friend(self, edge_id):
        return await self._call("remove_friend")

    async def search_users(self, query):
        return await self._call("search_users", list(self.search_results))

    async def list_playlists(self):
        return await self._call("list_playlists", list(self.owned))

    async def list_shared_playlists(self):
        return await self._call("list_shared_playlists", list(self.shared))

    async def create_playlist(self, name, description=None, region_id=None, is_public=False):
        return await self._call("create_playlist", playlist(99))

    async def add_track(self, playlist_id, track_id):
        return await self._call("add_track")

    async def remove_track(self, playlist_id, track_id):
        return await self._call("remove_track")

    async def share_playlist(self, playlist_id, user_id):
        return await self._call("share_playlist")

    async def delete_playlist(self, playlist_id):
        return await self._call("delete_playlist")


@pytest.fixture
def api():
    return FakeClient()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def identity():
    return IdentityContext()


class TestIdentityContext:

    async def test_listeners_follow_resolve_and_clear(self, identity):
        seen = []

        async def listener(user_id):
            seen.append(user_id)

        unsubscribe = identity.subscribe(listener)
        await identity.resolve("me")
        await identity.clear()
        unsubscribe()
        await identity.resolve("someone")

        assert seen == ["me", None]

    async def test_require(self, identity):
        with pytest.raises(NotAuthenticated):
            identity.require()

        await identity.resolve("me")
        assert identity.require() == "me"


class TestFriendsProjection:

    async def test_loads_when_identity_resolves(self, api, identity, notices):
        api.friends = FriendsList(accepted=[edge(1, "me", "bob")], pending_incoming=[edge(2, "carol", "me", "pending")])
        friends = FriendsProjection(api, identity, notify=notices.append)

        await identity.resolve("me")

        assert [e.id for e in friends.accepted] == [1]
        assert [e.id for e in friends.pending_incoming] == [2]
        assert friends.loading is False

    async def test_clears_on_sign_out(self, api, identity):
        api.friends = FriendsList(accepted=[edge(1, "me", "bob")], pending_incoming=[])
        friends = FriendsProjection(api, identity)
        await identity.resolve("me")

        await identity.clear()

        assert friends.accepted == []
        assert friends.pending_incoming == []

    async def test_failed_refresh_keeps_previous_lists(self, api, identity):
        api.friends = FriendsList(accepted=[edge(1, "me", "bob")], pending_incoming=[])
        friends = FriendsProjection(api, identity)
        await identity.resolve("me")

        api.errors["list_friends"] = StoreError()
        await friends.refresh()

        assert [e.id for e in friends.accepted] == [1]
        assert friends.loading is False

    async def test_refetches_on_friendship_change_only(self, api, identity):
        friends = FriendsProjection(api, identity)
        await identity.resolve("me")
        api.calls.clear()

        await friends.handle_change(notification(Table.PLAYLISTS))
        assert api.calls == []

        api.friends = FriendsList(accepted=[edge(5, "dan", "me")], pending_incoming=[])
        await friends.handle_change(notification(Table.FRIENDSHIPS))
        assert api.calls == ["list_friends"]
        assert [e.id for e in friends.accepted] == [5]

    async def test_superseded_fetch_is_ignored(self, identity):
        release_first = asyncio.Event()
        responses = [
            FriendsList(accepted=[edge(1, "me", "old")], pending_incoming=[]),
            FriendsList(accepted=[edge(2, "me", "new")], pending_incoming=[]),
        ]

        class SlowClient(FakeClient):
            async def list_friends(self):
                response = responses.pop(0)
                if response.accepted[0].id == 1:
                    await release_first.wait()
                return response

        await identity.resolve("me")
        friends = FriendsProjection(SlowClient(), identity)

        first = asyncio.create_task(friends.refresh())
        await asyncio.sleep(0)
        await friends.refresh()
        release_first.set()
        await first

        assert [e.id for e in friends.accepted] == [2]

    async def test_send_request_notices(self, api, identity, notices):
        friends = FriendsProjection(api, identity, notify=notices.append)

        assert await friends.send_request("bob") is False
        assert notices[-1].title == "Please sign in to add friends"

        await identity.resolve("me")
        assert await friends.send_request("bob") is True
        assert notices[-1].title == "Friend request sent!"
        assert notices[-1].destructive is False

        api.errors["send_friend_request"] = DuplicateEdgeError()
        assert await friends.send_request("bob") is False
        assert notices[-1].title == "Friend request already sent"
        assert notices[-1].destructive is True

        api.errors["send_friend_request"] = StoreError()
        assert await friends.send_request("bob") is False
        assert notices[-1].title == "Failed to send request"

    async def test_mutations_do_not_refetch(self, api, identity, notices):
        friends = FriendsProjection(api, identity, notify=notices.append)
        await identity.resolve("me")
        api.calls.clear()

        assert await friends.accept_request(1) is True
        assert await friends.reject_request(2) is True
        assert await friends.remove_friend(3) is True

        assert api.calls == ["accept_friend_request", "reject_friend_request", "remove_friend"]
        assert [n.title for n in notices] == ["Friend request accepted!", "Request declined", "Friend removed"]

    async def test_failed_mutations(self, api, identity, notices):
        friends = FriendsProjection(api, identity, notify=notices.append)
        await identity.resolve("me")
        api.errors.update({
            "accept_friend_request": StoreError(),
            "reject_friend_request": StoreError(),
            "remove_friend": StoreError(),
        })

        assert await friends.accept_request(1) is False
        assert await friends.reject_request(2) is False
        assert await friends.remove_friend(3) is False
        assert [n.title for n in notices] == [
            "Failed to accept request", "Failed to reject request", "Failed to remove friend"
        ]


class TestFriendSearch:

    async def test_result_removed_even_when_request_fails(self, api, identity, notices):
        await identity.resolve("me")
        friends = FriendsProjection(api, identity, notify=notices.append)
        search = FriendSearch(api, friends)
        api.search_results = [ProfileSummary(id="bob", display_name="Bob"), ProfileSummary(id="bo", display_name="Bo")]

        await search.search("bo")
        api.errors["send_friend_request"] = DuplicateEdgeError()
        sent = await search.add("bob")

        assert sent is False
        assert [p.id for p in search.results] == ["bo"]

    async def test_blank_query_clears_results(self, api, identity):
        search = FriendSearch(api, FriendsProjection(api, identity))
        search.results = [ProfileSummary(id="bob")]

        assert await search.search("  ") == []
        assert "search_users" not in api.calls


class TestPlaylistsProjection:

    async def test_loads_owned_and_shared(self, api, identity):
        api.owned = [playlist(1)]
        api.shared = [playlist(2, owner="bob")]
        playlists = PlaylistsProjection(api, identity)

        await identity.resolve("me")

        assert [p.id for p in playlists.owned] == [1]
        assert [p.id for p in playlists.shared] == [2]

    async def test_each_list_keeps_stale_data_on_failure(self, api, identity):
        api.owned = [playlist(1)]
        api.shared = [playlist(2, owner="bob")]
        playlists = PlaylistsProjection(api, identity)
        await identity.resolve("me")

        api.owned = [playlist(1), playlist(3)]
        api.errors["list_shared_playlists"] = StoreError()
        await playlists.refresh()

        assert [p.id for p in playlists.owned] == [1, 3]
        assert [p.id for p in playlists.shared] == [2]

    async def test_refetches_on_playlist_tables(self, api, identity):
        playlists = PlaylistsProjection(api, identity)
        await identity.resolve("me")

        for table in (Table.PLAYLISTS, Table.PLAYLIST_TRACKS, Table.PLAYLIST_SHARES):
            api.calls.clear()
            await playlists.handle_change(notification(table))
            assert sorted(api.calls) == ["list_playlists", "list_shared_playlists"]

        api.calls.clear()
        await playlists.handle_change(notification(Table.FRIENDSHIPS))
        assert api.calls == []

    async def test_successful_mutation_refetches(self, api, identity, notices):
        playlists = PlaylistsProjection(api, identity, notify=notices.append)
        await identity.resolve("me")
        api.calls.clear()

        created = await playlists.create_playlist("Mix")

        assert created.id == 99
        assert api.calls[0] == "create_playlist"
        assert "list_playlists" in api.calls
        assert notices[-1].title == "Playlist created!"

    async def test_create_without_identity(self, api, identity):
        playlists = PlaylistsProjection(api, identity)

        assert await playlists.create_playlist("Mix") is None
        assert api.calls == []

    async def test_conflict_notices(self, api, identity, notices):
        playlists = PlaylistsProjection(api, identity, notify=notices.append)
        await identity.resolve("me")

        api.errors["add_track"] = DuplicateTrackError()
        api.errors["share_playlist"] = AlreadySharedError()

        assert await playlists.add_track(1, 10) is False
        assert await playlists.share_playlist(1, "bob") is False
        assert [n.title for n in notices] == ["Track already in playlist", "Already shared with this user"]

    async def test_failure_notices(self, api, identity, notices):
        playlists = PlaylistsProjection(api, identity, notify=notices.append)
        await identity.resolve("me")
        for name in ("create_playlist", "add_track", "remove_track", "share_playlist", "delete_playlist"):
            api.errors[name] = StoreError()

        assert await playlists.create_playlist("Mix") is None
        assert await playlists.add_track(1, 10) is False
        assert await playlists.remove_track(1, 10) is False
        assert await playlists.share_playlist(1, "bob") is False
        assert await playlists.delete_playlist(1) is False
        assert [n.title for n in notices] == [
            "Failed to create playlist",
            "Failed to add track",
            "Failed to remove track",
            "Failed to share playlist",
            "Failed to delete playlist",
        ]

    async def test_success_notices(self, api, identity, notices):
        playlists = PlaylistsProjection(api, identity, notify=notices.append)
        await identity.resolve("me")

        await playlists.add_track(1, 10)
        await playlists.remove_track(1, 10)
        await playlists.share_playlist(1, "bob")
        await playlists.delete_playlist(1)

        assert [n.title for n in notices] == [
            "Track added to playlist!", "Track removed", "Playlist shared!", "Playlist deleted"
        ]


class TestRealtimeListener:

    async def test_dispatches_changes_to_handlers(self):
        listener = RealtimeListener("ws://test/ws/realtime", "token", [Table.FRIENDSHIPS])
        received = []

        async def handler(change):
            received.append(change.table)

        async def broken(change):
            raise RuntimeError("boom")

        listener.on_change(broken)
        listener.on_change(handler)

        await listener.dispatch(notification(Table.FRIENDSHIPS).model_dump(mode="json"))
        await listener.dispatch({"type": "pong", "timestamp": "2024-01-01T00:00:00Z"})
        await listener.dispatch({"type": "change", "table": "nope"})

        assert received == [Table.FRIENDSHIPS]

    async def test_projections_as_handlers(self, api, identity):
        friends = FriendsProjection(api, identity)
        await identity.resolve("me")
        listener = RealtimeListener("ws://test/ws/realtime", "token", [Table.FRIENDSHIPS])
        listener.on_change(friends.handle_change)
        api.calls.clear()

        await listener.dispatch(notification(Table.FRIENDSHIPS).model_dump(mode="json"))

        assert api.calls == ["list_friends"]
