"""Tests for the poller."""

import pytest
from unittest.mock import Mock, patch

from conftest import InlineExecutor, ManualExecutor
from core.artwork import ArtworkFetcher
from core.events import EventBus
from core.exceptions import ChannelInvocationError
from core.playback_state import NO_TRACK_TEXT, NOT_RUNNING_TEXT, PlayerAvailability, RepeatMode
from core.poller import SpotifyPoller
from core.snapshot import ERROR_SENTINEL, NOT_RUNNING_SENTINEL, parse


SONG = "Song||Artist||Album||playing||180000||30||id1||http://x/img.png"


@pytest.fixture
def channel():
    channel = Mock()
    channel.app_name = "Spotify"
    channel.get_snapshot.return_value = SONG
    channel.get_position.return_value = "42.5"
    channel.get_shuffle.return_value = "false"
    channel.get_repeat.return_value = "false"
    return channel


@pytest.fixture
def artwork():
    return Mock()


@pytest.fixture
def executor():
    return InlineExecutor()


@pytest.fixture
def poller(channel, store, artwork, event_bus, executor, main_loop):
    poller = SpotifyPoller(
        channel, store, artwork, event_bus,
        executor=executor,
        poll_interval=1.0,
        position_interval=0.5,
        resync_delay=0.2,
    )
    yield poller
    poller.stop()


class TestLifecycle:
    """Test start/stop."""

    def test_start_polls_immediately(self, poller, channel, store, main_loop):
        poller.start()
        main_loop.run_idle()
        channel.get_snapshot.assert_called_once()
        channel.get_shuffle.assert_called_once()
        channel.get_repeat.assert_called_once()
        assert store.track_name == "Song"

    def test_start_installs_timers(self, poller, main_loop):
        poller.start()
        assert len(main_loop.timers_with_interval(1000)) == 1
        assert len(main_loop.timers_with_interval(500)) == 1

    def test_start_twice_is_noop(self, poller, channel, main_loop):
        poller.start()
        poller.start()
        assert len(main_loop.timeouts) == 2
        channel.get_snapshot.assert_called_once()

    def test_primary_tick_repeats(self, poller, channel, main_loop):
        poller.start()
        main_loop.run_idle()
        (timer,) = main_loop.timers_with_interval(1000)
        assert main_loop.fire(timer) is True
        assert channel.get_snapshot.call_count == 2
        assert channel.get_shuffle.call_count == 2

    def test_position_tick(self, poller, store, main_loop):
        poller.start()
        main_loop.run_idle()
        (timer,) = main_loop.timers_with_interval(500)
        main_loop.fire(timer)
        assert store.position == 42.5
        assert store.duration == 180.0

    def test_stop_removes_timers(self, poller, channel, main_loop):
        poller.start()
        main_loop.run_idle()
        poller.stop()
        assert main_loop.timeouts == {}
        assert len(main_loop.removed) == 2
        assert poller.is_running is False

    def test_calls_after_stop_are_dropped(self, poller, channel, executor, main_loop):
        poller.start()
        main_loop.run_idle()
        poller.stop()
        submitted = len(executor.submitted)
        poller.play_pause()
        assert poller.resync_shuffle() is False
        assert len(executor.submitted) == submitted


class TestReconcile:
    """Test snapshot handling."""

    def test_reconcile_merges_then_requests_artwork(self, poller, store, artwork):
        poller.reconcile(parse(SONG))
        assert store.track_name == "Song"
        assert store.availability is PlayerAvailability.AVAILABLE
        artwork.request.assert_called_once_with("http://x/img.png")

    def test_malformed_snapshot_means_no_track(self, poller, channel, store, main_loop):
        channel.get_snapshot.return_value = "garbage"
        store.apply_snapshot(parse(SONG))
        poller.start()
        main_loop.run_idle()
        assert store.track_name == NO_TRACK_TEXT
        assert store.artist_name == ""
        assert store.is_playing is False
        assert store.duration == 0.0
        assert store.position == 0.0
        assert store.availability is PlayerAvailability.NO_TRACK

    def test_channel_failure_means_not_running(self, poller, channel, store, artwork, main_loop):
        store.apply_snapshot(parse(SONG))
        channel.get_snapshot.side_effect = ChannelInvocationError("boom")
        poller.start()
        main_loop.run_idle()
        assert store.track_name == NOT_RUNNING_TEXT
        assert store.is_playing is False
        assert store.artwork is None
        assert store.availability is PlayerAvailability.NOT_RUNNING
        # Progress is left alone
        assert store.duration == 180.0
        assert store.position == 30.0
        artwork.reset.assert_called_once()

    def test_not_running_sentinel(self, poller, channel, store, artwork, main_loop):
        channel.get_snapshot.return_value = NOT_RUNNING_SENTINEL
        poller.start()
        main_loop.run_idle()
        assert store.availability is PlayerAvailability.NOT_RUNNING
        artwork.request.assert_not_called()
        artwork.reset.assert_called_once()

    def test_error_sentinel_means_no_track(self, poller, channel, store, artwork, main_loop):
        channel.get_snapshot.return_value = ERROR_SENTINEL
        poller.start()
        main_loop.run_idle()
        assert store.track_name == NO_TRACK_TEXT
        assert store.availability is PlayerAvailability.NO_TRACK
        artwork.request.assert_not_called()
        artwork.reset.assert_called_once()

    def test_recovers_on_next_tick(self, poller, channel, store, main_loop):
        channel.get_snapshot.side_effect = ChannelInvocationError("boom")
        poller.start()
        main_loop.run_idle()
        channel.get_snapshot.side_effect = None
        (timer,) = main_loop.timers_with_interval(1000)
        main_loop.fire(timer)
        assert store.track_name == "Song"
        assert store.availability is PlayerAvailability.AVAILABLE

    def test_unexpected_error_leaves_store_alone(self, poller, channel, store, main_loop):
        store.apply_snapshot(parse(SONG))
        channel.get_snapshot.side_effect = RuntimeError("bug")
        poller.start()
        main_loop.run_idle()
        assert store.track_name == "Song"


class TestSilentQueries:
    """Position and flag failures must not touch the store."""

    def test_position_failure_is_silent(self, poller, channel, store, main_loop, recorded_events):
        poller.start()
        main_loop.run_idle()
        recorded_events.clear()
        channel.get_position.side_effect = ChannelInvocationError("boom")
        (timer,) = main_loop.timers_with_interval(500)
        assert main_loop.fire(timer) is True
        assert recorded_events == []
        assert store.availability is PlayerAvailability.AVAILABLE

    def test_position_garbage_is_ignored(self, poller, channel, store, main_loop):
        poller.start()
        main_loop.run_idle()
        channel.get_position.return_value = "missing value"
        (timer,) = main_loop.timers_with_interval(500)
        main_loop.fire(timer)
        assert store.position == 30.0

    def test_flag_failure_is_silent(self, poller, channel, store, main_loop):
        store.set_shuffle_enabled(True)
        channel.get_shuffle.side_effect = ChannelInvocationError("boom")
        poller.start()
        main_loop.run_idle()
        assert store.shuffle_enabled is True

    def test_flags_are_applied(self, poller, channel, store, main_loop):
        channel.get_shuffle.return_value = "true"
        channel.get_repeat.return_value = "true"
        poller.start()
        main_loop.run_idle()
        assert store.shuffle_enabled is True
        assert store.repeat_mode is RepeatMode.CONTEXT


class TestCoalescing:

    def test_slow_query_is_not_stacked(self, channel, store, artwork, event_bus, main_loop):
        executor = ManualExecutor()
        poller = SpotifyPoller(channel, store, artwork, event_bus, executor=executor,
                               poll_interval=1.0, position_interval=0.5, resync_delay=0.2)
        poller.start()
        assert len(executor.pending) == 3
        (timer,) = main_loop.timers_with_interval(1000)
        main_loop.fire(timer)
        assert len(executor.pending) == 3

    def test_resync_bypasses_pending_flag_query(self, channel, store, artwork, event_bus, main_loop):
        executor = ManualExecutor()
        poller = SpotifyPoller(channel, store, artwork, event_bus, executor=executor,
                               poll_interval=1.0, position_interval=0.5, resync_delay=0.2)
        poller.start()
        poller.toggle_shuffle()
        (resync,) = main_loop.timers_with_interval(200)
        main_loop.fire(resync)
        # snapshot, shuffle, repeat, toggle command, resync
        assert len(executor.pending) == 5


class TestCommands:
    """Commands are fire-and-forget."""

    def test_commands_do_not_touch_store(self, poller, channel, main_loop, recorded_events):
        poller.play_pause()
        poller.next_track()
        poller.previous_track()
        poller.seek(95.7)
        poller.open_player()
        main_loop.run_idle()
        channel.play_pause.assert_called_once()
        channel.next_track.assert_called_once()
        channel.previous_track.assert_called_once()
        channel.set_position.assert_called_once_with(95.7)
        channel.open_player.assert_called_once()
        assert recorded_events == []

    def test_command_failure_is_swallowed(self, poller, channel, store, main_loop):
        channel.next_track.side_effect = ChannelInvocationError("boom")
        poller.next_track()
        main_loop.run_idle()
        assert store.availability is PlayerAvailability.NO_TRACK

    def test_toggle_shuffle_resyncs_once(self, poller, channel, store, main_loop):
        poller.start()
        main_loop.run_idle()
        channel.get_shuffle.return_value = "true"
        poller.toggle_shuffle()
        channel.toggle_shuffle.assert_called_once()
        assert store.shuffle_enabled is False

        (resync,) = main_loop.timers_with_interval(200)
        assert main_loop.fire(resync) is False
        assert store.shuffle_enabled is True
        assert main_loop.timers_with_interval(200) == []

    def test_toggle_repeat_resyncs_once(self, poller, channel, store, main_loop):
        poller.start()
        main_loop.run_idle()
        channel.get_repeat.return_value = "true"
        poller.toggle_repeat()
        channel.toggle_repeat.assert_called_once()

        (resync,) = main_loop.timers_with_interval(200)
        main_loop.fire(resync)
        assert store.repeat_mode is RepeatMode.CONTEXT

    def test_resync_after_stop_is_noop(self, poller, channel, main_loop):
        poller.start()
        main_loop.run_idle()
        poller.toggle_shuffle()
        (resync,) = main_loop.timers_with_interval(200)
        poller.stop()
        main_loop.fire(resync)
        assert channel.get_shuffle.call_count == 1


class TestActionEvents:
    """UI actions arrive over the event bus."""

    def test_actions_dispatch_commands(self, poller, channel, event_bus, main_loop):
        event_bus.publish(EventBus.ACTION_PLAY_PAUSE)
        event_bus.publish(EventBus.ACTION_NEXT)
        event_bus.publish(EventBus.ACTION_PREV)
        event_bus.publish(EventBus.ACTION_SEEK, {"position": 12})
        event_bus.publish(EventBus.ACTION_OPEN_PLAYER)
        channel.play_pause.assert_called_once()
        channel.next_track.assert_called_once()
        channel.previous_track.assert_called_once()
        channel.set_position.assert_called_once_with(12.0)
        channel.open_player.assert_called_once()

    def test_seek_without_position_is_ignored(self, poller, channel, event_bus):
        event_bus.publish(EventBus.ACTION_SEEK, {})
        channel.set_position.assert_not_called()

    def test_toggle_actions_schedule_resync(self, poller, channel, event_bus, main_loop):
        event_bus.publish(EventBus.ACTION_TOGGLE_SHUFFLE)
        event_bus.publish(EventBus.ACTION_TOGGLE_REPEAT)
        channel.toggle_shuffle.assert_called_once()
        channel.toggle_repeat.assert_called_once()
        assert len(main_loop.timers_with_interval(200)) == 2


class TestArtworkRecovery:
    """The cover comes back after a transient no-track tick."""

    @pytest.fixture
    def fetcher(self, store, main_loop):
        session = Mock()
        session.headers = {}
        session.get.return_value = Mock(content=b"img")
        with patch('core.artwork.decode_image', side_effect=lambda data: ("image", data)):
            yield ArtworkFetcher(store, executor=InlineExecutor(), session=session)

    @pytest.mark.parametrize("bad_tick", [ERROR_SENTINEL, "garbage"])
    def test_same_track_refetches_artwork(self, channel, store, event_bus, executor, main_loop,
                                          fetcher, bad_tick):
        poller = SpotifyPoller(channel, store, fetcher, event_bus, executor=executor,
                               poll_interval=1.0, position_interval=0.5, resync_delay=0.2)
        poller.start()
        main_loop.run_idle()
        assert store.artwork == ("image", b"img")

        (timer,) = main_loop.timers_with_interval(1000)
        channel.get_snapshot.return_value = bad_tick
        main_loop.fire(timer)
        assert store.artwork is None

        channel.get_snapshot.return_value = SONG
        main_loop.fire(timer)
        assert store.track_name == "Song"
        assert store.artwork == ("image", b"img")
        poller.stop()
