import threading
from unittest.mock import Mock

import pytest

from lanrelay.beacon import QUERY, Listing, encode_reply
from lanrelay.config import Settings
from lanrelay.listings import ADD, DELETE, UPDATE, ListingStore
from lanrelay.masterserver import MasterserverError
from lanrelay.relay import Relay
from lanrelay.remoteconfig import RemoteConfig, RemoteConfigSync
from lanrelay.syncqueue import SyncQueue


class Masterserver:

    def __init__(self):
        self.batches = []
        self.config = {"ServiceMessage": "hello", "HeartbeatInterval": 60000}
        self.is_down = False

    def put_listings(self, actions):
        if self.is_down:
            raise MasterserverError("down")
        self.batches.append([(a.kind, a.listing.port) for a in actions])

    def get_config(self):
        if self.is_down:
            raise MasterserverError("down")
        return self.config


@pytest.fixture
def master():
    return Masterserver()


@pytest.fixture
def relay(master):
    r = Relay(
        Settings(expire_ticks=2),
        ListingStore(),
        SyncQueue(master.put_listings),
        RemoteConfigSync(master, RemoteConfig("hello", 60000)),
        beacon=Mock(),
        display=Mock(),
        background=False,
    )
    yield r
    r.stop()


def test_reply_is_reconciled_on_receipt(relay):
    relay.receive(encode_reply("a", 9000, 1, 4))
    assert 9000 in relay.store
    assert len(relay.sync_queue) == 1
    relay.receive(encode_reply("a", 9000, 1, 4))
    assert len(relay.sync_queue) == 1
    relay.receive(encode_reply("a", 9000, 0, 4))
    assert len(relay.sync_queue) == 2


def test_query_packets_are_ignored(relay):
    relay.receive(QUERY)
    assert len(relay.store) == 0
    assert len(relay.sync_queue) == 0


def test_tick(relay, master):
    relay.receive(encode_reply("a", 9000, 1, 4))
    relay.tick()
    relay.beacon.send_query.assert_called_once_with()
    assert master.batches == [[(ADD, 9000)]]
    listings, message, network_issues = relay.display.call_args[0]
    assert listings == [Listing("a", 3, 4, 9000, silent_ticks=1)]
    assert message == "hello"
    assert not network_issues


def test_silent_server_is_deleted(relay, master):
    relay.receive(encode_reply("a", 9000, 1, 4))
    relay.tick()
    relay.tick()
    assert 9000 in relay.store
    relay.tick()
    assert 9000 not in relay.store
    assert master.batches == [[(ADD, 9000)], [(DELETE, 9000)]]


def test_failed_flush_is_shown_and_not_retried(relay, master):
    master.is_down = True
    relay.receive(encode_reply("a", 9000, 1, 4))
    relay.tick()
    assert relay.display.call_args[0][2]
    master.is_down = False
    relay.receive(encode_reply("a", 9000, 2, 4))
    relay.tick()
    assert master.batches == [[(UPDATE, 9000)]]
    assert not relay.display.call_args[0][2]


def test_heartbeat_announces_every_server(relay, master):
    relay.receive(encode_reply("a", 9000, 1, 4))
    relay.receive(encode_reply("b", 9001, 1, 4))
    relay.tick()
    relay.heartbeat()
    assert sorted(master.batches[-1]) == [(ADD, 9000), (ADD, 9001)]


def test_heartbeat_with_unreachable_masterserver(relay, master):
    relay.receive(encode_reply("a", 9000, 1, 4))
    master.is_down = True
    relay.heartbeat()
    assert relay.remote_sync.config == RemoteConfig("hello", 60000)
    assert len(relay.sync_queue) == 0


def test_new_heartbeat_interval_restarts_the_ticker(relay, master):
    relay.start()
    old = relay.heartbeat_ticker
    master.config = {"ServiceMessage": "bye", "HeartbeatInterval": 30000}
    relay.heartbeat()
    assert old.is_cancelled
    assert relay.heartbeat_ticker is not old
    assert relay.heartbeat_ticker.interval == 30.0
    assert not relay.heartbeat_ticker.is_cancelled
    assert relay.remote_sync.config.service_message == "bye"


def test_same_config_keeps_the_ticker(relay):
    relay.start()
    old = relay.heartbeat_ticker
    relay.heartbeat()
    assert relay.heartbeat_ticker is old
    assert not old.is_cancelled


def test_background_heartbeat_applies_the_config_in_the_loop(relay, master):
    relay.background = True
    relay.start()
    old = relay.heartbeat_ticker
    master.config = {"ServiceMessage": "bye", "HeartbeatInterval": 30000}
    relay.heartbeat()
    relay.config_thread.join(5)
    assert relay.remote_sync.config.service_message == "hello"
    relay.run_pending()
    assert relay.remote_sync.config.service_message == "bye"
    assert old.is_cancelled


def test_a_failing_command_doesnt_stop_the_loop(relay):
    def boom():
        raise RuntimeError("boom")

    done = []
    relay.queue_command(boom)
    relay.queue_command(done.append, 1)
    relay.run_pending()
    assert done == [1]


def test_on_packet_queues_the_packet(relay):
    relay.on_packet(encode_reply("a", 9000, 1, 4))
    assert len(relay.store) == 0
    relay.run_pending()
    assert 9000 in relay.store


def test_start_opens_the_reader_and_the_tickers(relay):
    relay.start()
    relay.beacon.start.assert_called_once_with(relay.on_packet)
    assert relay.tick_ticker.interval == 1.0
    assert relay.heartbeat_ticker.interval == 60.0


def test_shutdown_delists_everything_once(relay, master):
    relay.receive(encode_reply("a", 9000, 1, 4))
    relay.receive(encode_reply("b", 9001, 1, 4))
    relay.start()
    relay.shutdown()
    assert relay.tick_ticker.is_cancelled
    assert relay.heartbeat_ticker.is_cancelled
    assert master.batches == [[(ADD, 9000), (ADD, 9001), (DELETE, 9000), (DELETE, 9001)]]
    assert relay.store.snapshot() == []
    relay.beacon.close.assert_called_once_with()
    relay.shutdown()
    assert len(master.batches) == 1


def test_shutdown_doesnt_wait_forever(relay):
    blocked = threading.Event()
    relay.sync_queue._send = lambda batch: blocked.wait(10)
    relay.receive(encode_reply("a", 9000, 1, 4))
    relay.shutdown(grace=0.1)
    assert relay.is_shut_down
    blocked.set()
