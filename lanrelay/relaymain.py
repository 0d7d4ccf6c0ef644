import logging
import optparse
import signal
import sys

from . import config
from .console import print_status
from .discovery import Beacon
from .lib import log
from .lib.log import critical, info, warning
from .listings import ListingStore
from .masterserver import Masterserver
from .relay import Relay
from .remoteconfig import RemoteConfigSync
from .syncqueue import SyncQueue

LOG_PATH = "lanrelay.log"


def _parse_options(args):
    parser = optparse.OptionParser(usage="%prog [options]")
    parser.add_option("-c", "--config", type="string", default=config.DEFAULT_PATH,
                      help="settings file (default: %default)")
    parser.add_option("-v", "--verbose", action="store_true", default=False)
    parser.add_option("--no-log-file", action="store_true", default=False)
    parser.add_option("--no-console", action="store_true", default=False,
                      help="don't print the status screen")
    options, _ = parser.parse_args(args)
    return options


def _configure_logging(options):
    log.clear_handlers()
    level = logging.DEBUG if options.verbose else logging.INFO
    if not options.no_log_file:
        log.add_rotating_file_handler(LOG_PATH, "a", 1000000, 5, level=level)
    if options.no_console or options.verbose:
        log.add_console_handler(level)
    else:
        # the status screen is redrawn every tick: only show problems
        log.add_console_handler(logging.WARNING)


def build_relay(settings, display=None):
    masterserver = Masterserver(settings.masterserver_url, settings.http_timeout)
    return Relay(
        settings,
        ListingStore(),
        SyncQueue(masterserver.put_listings),
        RemoteConfigSync(masterserver, settings.remote_config()),
        beacon=Beacon(settings.beacon_port, settings.broadcast_address),
        display=display,
    )


def _install_signal_handlers(relay):
    def handler(signum, frame):
        if relay.is_shut_down:
            return
        info("signal %s received, shutting down...", signum)
        relay.queue_command(relay.shutdown)

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def main(args=None):
    options = _parse_options(sys.argv[1:] if args is None else args)
    _configure_logging(options)
    try:
        settings = config.load(options.config)
    except config.ConfigError as e:
        critical("%s", e)
        return 1
    info("settings: %r", settings)
    relay = build_relay(settings, display=None if options.no_console else print_status)
    try:
        relay.beacon.open()
    except OSError as e:
        critical("couldn't open the beacon socket on port %s: %s", settings.beacon_port, e)
        return 1
    _install_signal_handlers(relay)
    relay.start()
    try:
        relay.loop()
    finally:
        if not relay.is_shut_down:
            warning("unexpected end of the relay loop")
            relay.shutdown()
        relay.remote_sync.masterserver.close()
    info("relay stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
