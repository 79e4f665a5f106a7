import pytest

from frequency.core.security import create_refresh_token, decode_token
from frequency.utils.exceptions import ConflictError, NotAuthenticated, ValidationError

PASSWORD = "secret123"


class TestRegisterAndLogin:

    async def test_register_with_email(self, make_client):
        client = make_client()

        token = await client.register(PASSWORD, email="dana@example.com")
        me = await client.me()

        assert me.id == token.user_id
        assert me.email == "dana@example.com"
        # Display name falls back to the local part of the address
        assert me.profile.display_name == "dana"
        assert decode_token(token.access_token)["sub"] == token.user_id

    async def test_register_with_phone(self, make_client):
        client = make_client()

        token = await client.register(PASSWORD, phone="+15550100", display_name="Phone Person")
        client.sign_out()
        again = await client.login(PASSWORD, phone="+15550100")

        assert again.user_id == token.user_id
        assert (await client.me()).profile.display_name == "Phone Person"

    async def test_login_with_email(self, make_client):
        client = make_client()
        token = await client.register(PASSWORD, email="erin@example.com")
        client.sign_out()

        again = await client.login(PASSWORD, email="erin@example.com")

        assert again.user_id == token.user_id

    async def test_wrong_password(self, make_client):
        client = make_client()
        await client.register(PASSWORD, email="erin@example.com")

        with pytest.raises(NotAuthenticated):
            await client.login("wrong-password", email="erin@example.com")

    async def test_duplicate_email(self, make_client):
        client = make_client()
        await client.register(PASSWORD, email="erin@example.com")

        with pytest.raises(ConflictError):
            await make_client().register(PASSWORD, email="erin@example.com")

    async def test_email_and_phone_together_is_invalid(self, make_client):
        with pytest.raises(ValidationError):
            await make_client().register(PASSWORD, email="erin@example.com", phone="+15550100")

    async def test_refresh(self, make_client):
        client = make_client()
        token = await client.register(PASSWORD, email="erin@example.com")

        refreshed = await client.refresh(token.refresh_token)

        assert refreshed.user_id == token.user_id

    async def test_access_token_cannot_refresh(self, make_client):
        client = make_client()
        token = await client.register(PASSWORD, email="erin@example.com")

        with pytest.raises(NotAuthenticated):
            await client.refresh(token.access_token)


class TestIdentityRequired:

    async def test_me_without_token(self, make_client):
        with pytest.raises(NotAuthenticated):
            await make_client().me()

    async def test_refresh_token_is_not_an_access_token(self, make_client):
        client = make_client()
        token = await client.register(PASSWORD, email="erin@example.com")
        client.token = create_refresh_token(token.user_id)

        with pytest.raises(NotAuthenticated):
            await client.list_friends()


class TestProfile:

    async def test_update_profile(self, sign_up):
        alice, _ = await sign_up("Alice")

        profile = await alice.update_profile(display_name="Alice Cooper")

        assert profile.display_name == "Alice Cooper"

    async def test_blank_display_name(self, sign_up):
        alice, _ = await sign_up("Alice")

        with pytest.raises(ValidationError):
            await alice.update_profile(display_name="  ")

    async def test_locations(self, sign_up):
        alice, alice_id = await sign_up("Alice")
        bob, _ = await sign_up("Bob")

        await alice.update_location(6.5244, 3.3792)
        locations = await bob.user_locations()

        assert [(l.id, l.current_latitude) for l in locations] == [(alice_id, 6.5244)]
