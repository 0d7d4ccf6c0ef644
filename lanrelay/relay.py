import queue
import threading

from .beacon import decode
from .lib.log import debug, exception, info, warning
from .lib.ticker import Ticker
from .listings import ADD, Action

SHUTDOWN_GRACE = 2.0  # seconds allowed for the final delisting


def _seconds(ms):
    return ms / 1000.0


class Relay:
    """Drives the tick and heartbeat cycles.

    The tickers, the socket reader and the background requests don't
    touch the listings: they queue commands, executed one by one by
    loop() (or run_pending()) in a single thread.
    Beacon replies are reconciled as soon as they are received.
    """

    def __init__(
        self,
        settings,
        store,
        sync_queue,
        remote_sync,
        beacon=None,
        display=None,
        background=True,
    ):
        self.settings = settings
        self.store = store
        self.sync_queue = sync_queue
        self.remote_sync = remote_sync
        self.remote_sync.on_change = self._reschedule_heartbeat
        self.beacon = beacon
        self.display = display
        self.background = background
        self.tick_ticker = None
        self.heartbeat_ticker = None
        self.config_thread = None
        self.is_shut_down = False
        # SimpleQueue.put is safe to call from a signal handler
        self._commands = queue.SimpleQueue()
        self._must_loop = False

    # command loop

    def queue_command(self, function, *args):
        self._commands.put((function, args))

    def _execute(self, function, args):
        try:
            function(*args)
        except Exception:
            exception("error in %s", getattr(function, "__name__", function))

    def run_pending(self):
        while True:
            try:
                function, args = self._commands.get_nowait()
            except queue.Empty:
                return
            self._execute(function, args)

    def loop(self):
        self._must_loop = True
        while self._must_loop:
            try:
                function, args = self._commands.get(timeout=0.1)
            except queue.Empty:
                continue
            self._execute(function, args)

    def stop_loop(self):
        self._must_loop = False

    # cycles

    def _flush(self):
        if self.background:
            self.sync_queue.flush_in_background()
        else:
            self.sync_queue.flush()

    def on_packet(self, packet):
        # called by the socket reader thread
        self.queue_command(self.receive, packet)

    def receive(self, packet):
        listing = decode(packet)
        if listing is None:
            return
        action = self.store.reconcile(listing)
        if action is not None:
            self.sync_queue.enqueue(action)

    def tick(self):
        if self.beacon is not None:
            self.beacon.send_query()
        self.sync_queue.extend(self.store.expire(self.settings.expire_ticks))
        self._flush()
        self.show_status()

    def show_status(self):
        if self.display is not None:
            self.display(
                self.store.snapshot(),
                self.remote_sync.config.service_message,
                self.sync_queue.last_flush_failed,
            )

    def _fetch_config(self):
        # background thread: the result is applied by the command loop
        self.queue_command(self.remote_sync.apply, self.remote_sync.fetch())

    def heartbeat(self):
        if self.background:
            self.config_thread = threading.Thread(target=self._fetch_config, daemon=True)
            self.config_thread.start()
        else:
            self.remote_sync.refresh()
        for listing in self.store.snapshot():
            self.sync_queue.enqueue(Action(ADD, listing))
        self._flush()

    # timers

    def _start_ticker(self, interval_ms, command):
        t = Ticker(_seconds(interval_ms), self.queue_command, args=(command,))
        t.start()
        return t

    def _reschedule_heartbeat(self, config):
        if self.heartbeat_ticker is None or self.is_shut_down:
            return
        self.heartbeat_ticker.cancel()
        self.heartbeat_ticker = self._start_ticker(config.heartbeat_interval, self.heartbeat)
        info("heartbeat every %s ms", config.heartbeat_interval)

    def start(self):
        if self.beacon is not None:
            self.beacon.start(self.on_packet)
        self.tick_ticker = self._start_ticker(self.settings.tick_interval, self.tick)
        self.heartbeat_ticker = self._start_ticker(
            self.remote_sync.config.heartbeat_interval, self.heartbeat
        )
        info(
            "relay started (tick: %s ms, heartbeat: %s ms)",
            self.settings.tick_interval,
            self.remote_sync.config.heartbeat_interval,
        )

    def stop(self):
        for t in (self.tick_ticker, self.heartbeat_ticker):
            if t is not None:
                t.cancel()

    def shutdown(self, grace=SHUTDOWN_GRACE):
        """Delist all the servers, waiting at most grace seconds."""
        if self.is_shut_down:
            return
        self.is_shut_down = True
        self.stop()
        info("delisting servers...")
        self.sync_queue.extend(self.store.clear())
        t = threading.Thread(target=self.sync_queue.flush, daemon=True)
        t.start()
        t.join(grace)
        if t.is_alive():
            warning("the masterserver didn't answer within %s seconds", grace)
        else:
            debug("delisting done")
        if self.beacon is not None:
            self.beacon.close()
        self.stop_loop()
