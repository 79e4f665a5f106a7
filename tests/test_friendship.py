import pytest
from sqlalchemy import func, select

from frequency.models.friendship import Friendship
from frequency.utils.exceptions import (
    ConflictError,
    DuplicateEdgeError,
    NotAuthenticated,
    NotFoundError,
    ValidationError
)


class TestSendRequest:

    async def test_creates_pending_edge(self, sign_up):
        alice, alice_id = await sign_up("Alice")
        _, bob_id = await sign_up("Bob")

        edge = await alice.send_friend_request(bob_id)

        assert edge.status == "pending"
        assert edge.user_id == alice_id
        assert edge.friend_id == bob_id
        assert edge.counterpart.display_name == "Bob"

    async def test_duplicate_request_is_rejected(self, sign_up, db_session):
        alice, _ = await sign_up("Alice")
        _, bob_id = await sign_up("Bob")

        await alice.send_friend_request(bob_id)
        with pytest.raises(DuplicateEdgeError) as exc_info:
            await alice.send_friend_request(bob_id)

        assert exc_info.value.message == "Friend request already sent"
        count = await db_session.scalar(select(func.count()).select_from(Friendship))
        assert count == 1

    async def test_reverse_direction_is_also_a_duplicate(self, sign_up):
        alice, alice_id = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")

        await alice.send_friend_request(bob_id)
        with pytest.raises(ConflictError):
            await bob.send_friend_request(alice_id)

    async def test_cannot_befriend_yourself(self, sign_up):
        alice, alice_id = await sign_up("Alice")

        with pytest.raises(ValidationError):
            await alice.send_friend_request(alice_id)

    async def test_unknown_user(self, sign_up):
        alice, _ = await sign_up("Alice")

        with pytest.raises(NotFoundError):
            await alice.send_friend_request("00000000-0000-0000-0000-000000000000")

    async def test_requires_sign_in(self, make_client):
        anonymous = make_client()

        with pytest.raises(NotAuthenticated):
            await anonymous.send_friend_request("someone")


class TestAcceptRequest:

    async def test_recipient_accepts(self, sign_up):
        alice, alice_id = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")
        edge = await alice.send_friend_request(bob_id)

        accepted = await bob.accept_friend_request(edge.id)

        assert accepted.status == "accepted"
        assert accepted.counterpart_id == alice_id

    async def test_accept_twice_is_idempotent(self, sign_up):
        alice, _ = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")
        edge = await alice.send_friend_request(bob_id)

        await bob.accept_friend_request(edge.id)
        again = await bob.accept_friend_request(edge.id)

        assert again.status == "accepted"

    async def test_requester_cannot_accept(self, sign_up):
        alice, _ = await sign_up("Alice")
        _, bob_id = await sign_up("Bob")
        edge = await alice.send_friend_request(bob_id)

        with pytest.raises(NotFoundError):
            await alice.accept_friend_request(edge.id)

    async def test_bystander_cannot_accept(self, sign_up):
        alice, _ = await sign_up("Alice")
        _, bob_id = await sign_up("Bob")
        carol, _ = await sign_up("Carol")
        edge = await alice.send_friend_request(bob_id)

        with pytest.raises(NotFoundError):
            await carol.accept_friend_request(edge.id)

    async def test_missing_edge(self, sign_up):
        bob, _ = await sign_up("Bob")

        with pytest.raises(NotFoundError):
            await bob.accept_friend_request(9999)


class TestDeleteEdge:

    async def test_reject_removes_pending_edge(self, sign_up):
        alice, _ = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")
        edge = await alice.send_friend_request(bob_id)

        await bob.reject_friend_request(edge.id)

        friends = await bob.list_friends()
        assert friends.pending_incoming == []

    async def test_either_party_removes_friend(self, sign_up):
        alice, _ = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")
        edge = await alice.send_friend_request(bob_id)
        await bob.accept_friend_request(edge.id)

        await alice.remove_friend(edge.id)

        assert (await alice.list_friends()).accepted == []
        assert (await bob.list_friends()).accepted == []

    async def test_request_can_be_sent_again_after_removal(self, sign_up):
        alice, alice_id = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")
        edge = await alice.send_friend_request(bob_id)
        await bob.reject_friend_request(edge.id)

        again = await bob.send_friend_request(alice_id)
        assert again.status == "pending"

    async def test_bystander_cannot_delete(self, sign_up):
        alice, _ = await sign_up("Alice")
        _, bob_id = await sign_up("Bob")
        carol, _ = await sign_up("Carol")
        edge = await alice.send_friend_request(bob_id)

        with pytest.raises(NotFoundError):
            await carol.remove_friend(edge.id)


class TestListFriends:

    async def test_accepted_from_both_sides(self, sign_up):
        alice, alice_id = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")
        edge = await alice.send_friend_request(bob_id)
        await bob.accept_friend_request(edge.id)

        alice_view = await alice.list_friends()
        bob_view = await bob.list_friends()

        assert [e.counterpart_id for e in alice_view.accepted] == [bob_id]
        assert alice_view.accepted[0].counterpart.display_name == "Bob"
        assert [e.counterpart_id for e in bob_view.accepted] == [alice_id]

    async def test_only_incoming_requests_are_pending(self, sign_up):
        alice, alice_id = await sign_up("Alice")
        bob, bob_id = await sign_up("Bob")
        await alice.send_friend_request(bob_id)

        alice_view = await alice.list_friends()
        bob_view = await bob.list_friends()

        assert alice_view.pending_incoming == []
        assert alice_view.accepted == []
        assert [e.counterpart_id for e in bob_view.pending_incoming] == [alice_id]
        assert bob_view.pending_incoming[0].counterpart.display_name == "Alice"


class TestSearchUsers:

    async def test_case_insensitive_and_excludes_self(self, sign_up):
        alice, _ = await sign_up("Alice")
        await sign_up("Alicia")
        await sign_up("Bob")

        results = await alice.search_users("ALI")

        assert [profile.display_name for profile in results] == ["Alicia"]

    async def test_empty_query_is_invalid(self, sign_up):
        alice, _ = await sign_up("Alice")

        with pytest.raises(ValidationError):
            await alice.search_users("   ")
