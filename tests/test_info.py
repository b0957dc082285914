from voicegate.ids import ChannelId, GuildId, UserId
from voicegate.info import ConnectionInfo, ConnectionProgress

GUILD = GuildId(10)
USER = UserId(20)
CHANNEL = ChannelId(30)
OTHER_CHANNEL = ChannelId(31)


def fresh():
    return ConnectionProgress(GUILD, USER, CHANNEL)


def completed():
    progress = fresh()
    progress.apply_server_update("voice.example.com", "token")
    progress.apply_state_update("session", CHANNEL)
    return progress


def test_new_progress_is_incomplete():
    progress = fresh()
    assert progress.in_progress() is True
    assert progress.get_connection_info() is None
    assert progress.info() is None
    assert progress.channel_id() == CHANNEL
    assert progress.guild_id() == GUILD
    assert progress.user_id() == USER


def test_server_then_state_completes():
    progress = fresh()
    assert progress.apply_server_update("voice.example.com", "token") is False
    assert progress.in_progress() is True
    assert progress.apply_state_update("session", CHANNEL) is True
    assert progress.in_progress() is False
    info = progress.get_connection_info()
    assert info == ConnectionInfo(
        channel_id=CHANNEL,
        endpoint="voice.example.com",
        guild_id=GUILD,
        session_id="session",
        token="token",
        user_id=USER,
    )
    assert progress.info() == info


def test_state_then_server_completes():
    progress = fresh()
    assert progress.apply_state_update("session", CHANNEL) is False
    assert progress.apply_server_update("voice.example.com", "token") is True
    assert progress.info().session_id == "session"


def test_complete_server_update_same_values_does_not_reconnect():
    progress = completed()
    assert progress.apply_server_update("voice.example.com", "token") is False
    assert progress.info().endpoint == "voice.example.com"


def test_complete_server_update_new_endpoint_reconnects():
    progress = completed()
    assert progress.apply_server_update("other.example.com", "token") is True
    assert progress.info().endpoint == "other.example.com"
    assert progress.in_progress() is False


def test_complete_state_update_same_session_does_not_reconnect():
    progress = completed()
    assert progress.apply_state_update("session", CHANNEL) is False


def test_complete_state_update_new_session_reconnects():
    progress = completed()
    assert progress.apply_state_update("session-2", CHANNEL) is True
    assert progress.info().session_id == "session-2"


def test_channel_move_resets_progress():
    progress = completed()
    assert progress.apply_state_update("session", OTHER_CHANNEL) is False
    assert progress.in_progress() is True
    assert progress.channel_id() == OTHER_CHANNEL
    assert progress.guild_id() == GUILD
    assert progress.apply_server_update("voice.example.com", "token") is True
    assert progress.info().channel_id == OTHER_CHANNEL


def test_incomplete_channel_move_forgets_server_details():
    progress = fresh()
    progress.apply_server_update("voice.example.com", "token")
    assert progress.apply_state_update("session", OTHER_CHANNEL) is False
    assert progress.in_progress() is True
    assert progress.apply_server_update("other.example.com", "token") is True
    info = progress.info()
    assert info.channel_id == OTHER_CHANNEL
    assert info.endpoint == "other.example.com"
    assert info.session_id == "session"


def test_connection_info_repr_hides_token():
    info = completed().info()
    text = repr(info)
    assert "<secret>" in text
    assert "token='token'" not in text
    assert "voice.example.com" in text


def test_progress_repr_hides_token():
    progress = fresh()
    progress.apply_server_update("voice.example.com", "token")
    text = repr(progress)
    assert "token_is_some=True" in text
    assert "'token'" not in text


def test_connection_info_hashable():
    a = completed().info()
    b = completed().info()
    assert a == b
    assert len({a, b}) == 1