from .lib.log import info, warning
from .masterserver import MasterserverError


class RemoteConfig:
    """Configuration issued by the masterserver."""

    def __init__(self, service_message, heartbeat_interval):
        if not isinstance(heartbeat_interval, int) or isinstance(heartbeat_interval, bool):
            raise TypeError("heartbeat interval must be an int: %r" % (heartbeat_interval,))
        if heartbeat_interval <= 0:
            raise ValueError("heartbeat interval must be positive: %r" % heartbeat_interval)
        self.service_message = str(service_message)
        self.heartbeat_interval = heartbeat_interval  # milliseconds

    def __repr__(self):
        return "<RemoteConfig %r heartbeat=%sms>" % (
            self.service_message,
            self.heartbeat_interval,
        )

    def __eq__(self, other):
        if isinstance(other, RemoteConfig):
            return (self.service_message, self.heartbeat_interval) == (
                other.service_message,
                other.heartbeat_interval,
            )
        return NotImplemented

    @classmethod
    def from_json(cls, d):
        return cls(d["ServiceMessage"], d["HeartbeatInterval"])


class RemoteConfigSync:
    """Keeps the current remote config.

    on_change is called with the new config when it changes; the relay
    uses it to restart the heartbeat ticker.
    """

    def __init__(self, masterserver, config, on_change=None):
        self.masterserver = masterserver
        self.config = config
        self.on_change = on_change

    def fetch(self):
        """Read the remote config. Return None if it couldn't be read.

        Safe to call from another thread: nothing is changed here.
        """
        try:
            d = self.masterserver.get_config()
        except MasterserverError as e:
            warning("%s (keeping the current config)", e)
            return
        try:
            return RemoteConfig.from_json(d)
        except (KeyError, TypeError, ValueError):
            warning("wrong config from the masterserver: %r (keeping the current config)", d)

    def apply(self, new_config):
        """Replace the config if it differs. Return True if it was replaced."""
        if new_config is None or new_config == self.config:
            return False
        info("new config from the masterserver: %r", new_config)
        self.config = new_config
        if self.on_change is not None:
            self.on_change(new_config)
        return True

    def refresh(self):
        new_config = self.fetch()
        self.apply(new_config)
        return new_config
