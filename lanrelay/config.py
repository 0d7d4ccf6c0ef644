# read the settings file

import configparser
import os

from .lib.log import info, warning
from .remoteconfig import RemoteConfig

DEFAULT_PATH = "lanrelay.ini"
ENV_PREFIX = "LANRELAY_"


class ConfigError(Exception):
    pass


def _positive(converter):
    def convert(s):
        value = converter(s)
        if value <= 0:
            raise ValueError("must be positive")
        return value
    return convert


def _not_negative(s):
    value = int(s)
    if value < 0:
        raise ValueError("must not be negative")
    return value


def _port(s):
    value = int(s)
    if not 1 <= value <= 65535:
        raise ValueError("not a port number")
    return value


def _url(s):
    s = s.strip().rstrip("/")
    if not s.startswith(("http://", "https://")):
        raise ValueError("not an HTTP URL")
    return s


_options = [
    ("local", "masterserver_url", "http://localhost:8080", _url),
    ("local", "tick_interval", 1000, _positive(int)),
    ("local", "expire_ticks", 5, _not_negative),
    ("local", "beacon_port", 14001, _port),
    ("local", "broadcast_address", "255.255.255.255", str),
    ("local", "http_timeout", 5.0, _positive(float)),
    ("remote", "service_message", "", str),
    ("remote", "heartbeat_interval", 60000, _positive(int)),
]


class Settings:
    """Read-only local settings."""

    def __init__(self, **values):
        for _, option, default, _ in _options:
            object.__setattr__(self, option, values.get(option, default))

    def __setattr__(self, name, value):
        raise AttributeError("settings are read-only")

    def __repr__(self):
        return "<Settings %s>" % " ".join(
            "%s=%r" % (option, getattr(self, option)) for _, option, _, _ in _options
        )

    def remote_config(self):
        """The config used until the masterserver sends one."""
        return RemoteConfig(self.service_message, self.heartbeat_interval)


def save(name=DEFAULT_PATH, settings=None):
    if settings is None:
        settings = Settings()
    c = configparser.ConfigParser(interpolation=None)
    for section, option, _, _ in _options:
        if not c.has_section(section):
            c.add_section(section)
        c.set(section, option, str(getattr(settings, option)))
    with open(name, "w") as f:
        c.write(f)


def _read_values(c):
    values = {}
    for section, option, default, converter in _options:
        env_value = os.getenv(ENV_PREFIX + option.upper())
        if env_value is not None:
            raw_value = env_value
        elif c.has_option(section, option):
            raw_value = c.get(section, option)
        else:
            info("%r option is missing (will be: %r)", option, default)
            values[option] = default
            continue
        try:
            values[option] = converter(raw_value)
        except ValueError as e:
            raise ConfigError("wrong value for %s: %r (%s)" % (option, raw_value, e))
    return values


def load(name=DEFAULT_PATH):
    c = configparser.ConfigParser(interpolation=None)
    if os.path.isfile(name):
        try:
            with open(name) as f:
                c.read_file(f)
        except (OSError, UnicodeDecodeError, configparser.Error) as e:
            raise ConfigError("couldn't read %s: %s" % (name, e))
    else:
        warning("%s not found: writing the default settings", name)
        try:
            save(name)
        except OSError as e:
            warning("couldn't write %s: %s", name, e)
    return Settings(**_read_values(c))
