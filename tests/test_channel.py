import pytest

from core.channel import ChannelClosed, EventChannel, SettingsChannel


def test_drain_returns_everything_in_order():
    channel = EventChannel()
    for i in range(3):
        channel.publish(i)

    assert channel.drain() == [0, 1, 2]
    assert channel.drain() == []


def test_publish_after_close_raises():
    channel = EventChannel()
    channel.close()

    assert channel.closed
    with pytest.raises(ChannelClosed):
        channel.publish("late")


def test_settings_poll_is_empty_without_messages():
    assert SettingsChannel().poll() is None


def test_settings_poll_returns_latest():
    channel = SettingsChannel()
    channel.send("first")
    channel.send("second")

    assert channel.poll() == "second"
    assert channel.poll() is None
