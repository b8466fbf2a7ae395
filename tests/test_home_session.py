import pytest

from peep.core.toast import PEEP_VIBRATION_PATTERN
from peep.schemas.peep import PeepCreate
from peep.schemas.status import UserStatus
from peep.schemas.user import AuthSession
from peep.services.home_session import HomeSession, PEEP_FAILED


@pytest.fixture
def home(backend, sensor, context, toast, haptics):
    backend.add_profile("me", user_id="me")
    backend.add_profile("alice", user_id="alice")
    backend.befriend("me", "alice")
    context.session = AuthSession(access_token="t", user_id="me")
    return HomeSession(context, backend, sensor, haptics, toast=toast, broadcast_interval=3600)


@pytest.mark.asyncio
async def test_mount_wires_broadcast_status_feed_and_peep_feed(backend, home, settle):
    await home.mount("active")
    await settle()

    assert home.broadcaster.running
    assert backend.statuses["me"].friendly_name == "Listening to Spotify 🎵"
    assert len(backend.open_feeds("user_status")) == 1
    assert len(backend.open_feeds("peeps")) == 1
    await home.unmount()


@pytest.mark.asyncio
async def test_friend_status_change_reaches_context(backend, home, context, settle):
    await home.mount("background")
    await backend.upsert_status(UserStatus(user_id="alice", friendly_name="Checking Gmail 📧"))
    await settle()

    assert context.friend("alice").status.friendly_name == "Checking Gmail 📧"
    await home.unmount()


@pytest.mark.asyncio
async def test_unmount_releases_everything(backend, home):
    await home.mount("active")
    await home.unmount()
    await home.unmount()

    assert not home.broadcaster.running
    assert backend.open_feeds() == []
    assert not home.toast.visible


@pytest.mark.asyncio
async def test_peep_success_shows_friend_activity(backend, home, toast, haptics):
    backend.statuses["alice"] = UserStatus(user_id="alice", friendly_name="Watching YouTube 📺")
    await home.mount("background")

    result = await home.peep("alice")

    assert result.ok
    assert toast.shown[-1] == "alice: Watching YouTube 📺"
    assert haptics.pulses[-1] == PEEP_VIBRATION_PATTERN
    await home.unmount()


@pytest.mark.asyncio
async def test_peep_without_permission_offers_settings(backend, sensor, home):
    sensor.permission = False
    await home.mount("background")
    backend.calls.clear()

    result = await home.peep("alice")

    assert result.needs_permission
    assert not result.ok
    assert backend.calls == []
    assert backend.peeps == []
    await home.open_permission_settings()
    assert sensor.permission_requests == 1
    await home.unmount()


@pytest.mark.asyncio
async def test_peep_failure_shows_transient_error(backend, home, toast):
    await home.mount("background")
    backend.failing.add("insert_peep")

    result = await home.peep("alice")

    assert result.error == PEEP_FAILED
    assert toast.shown[-1] == PEEP_FAILED
    await home.unmount()


@pytest.mark.asyncio
async def test_two_peeps_reach_receiver_as_two_alerts(backend, sensor, context, toast, haptics, settle):
    backend.add_profile("me", user_id="me")
    backend.add_profile("alice", user_id="alice")
    backend.befriend("me", "alice")
    context.session = AuthSession(access_token="t", user_id="alice")
    receiver = HomeSession(context, backend, sensor, haptics, toast=toast, broadcast_interval=3600)
    await receiver.mount("background")

    for _ in range(2):
        await backend.insert_peep(PeepCreate(from_user_id="me", to_user_id="alice", friendly_name="x"))
    await settle()

    assert len(backend.peeps) == 2
    assert toast.shown == ["👀 me peeped you!", "👀 me peeped you!"]
    await receiver.unmount()


@pytest.mark.asyncio
async def test_lifecycle_cycle_through_session(home, settle):
    await home.mount("active")
    home.on_app_state_change("background")
    assert not home.broadcaster.running
    home.on_app_state_change("active")
    await settle()
    assert home.broadcaster.running
    await home.unmount()


@pytest.mark.asyncio
async def test_refresh_follows_new_friends(backend, home, context, settle):
    await home.mount("background")
    backend.add_profile("bob", user_id="bob")
    backend.befriend("bob", "me")

    await home.refresh()
    await backend.upsert_status(UserStatus(user_id="bob", friendly_name="Using Snapchat 👻"))
    await settle()

    assert context.friend("bob").status.friendly_name == "Using Snapchat 👻"
    assert len(backend.open_feeds("user_status")) == 1
    await home.unmount()


@pytest.mark.asyncio
async def test_sign_out_clears_push_token_and_state(backend, home, context):
    backend.profiles["me"] = backend.profiles["me"].model_copy(update={"push_token": "tok"})
    await home.mount("active")

    await home.sign_out()

    assert backend.profiles["me"].push_token is None
    assert context.session is None
    assert context.friends == []
    assert not home.broadcaster.running
    assert backend.open_feeds() == []
