import logging
import logging.handlers
import sys

FULL_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
SHORT_FORMAT = "%(levelname)s: %(message)s"


class _NeverCrash:
    """
    Prevents crash when stdout or stderr is gone (detached console, closed pipe).
    """

    def __init__(self, f):
        self._f = f

    def __call__(self, *args, **kargs):
        try:
            self._f(*args, **kargs)
        except OSError:
            if "Errno 9" not in str(sys.exc_info()[1]):
                raise


def _configure_handler(h, format, level):
    h.setFormatter(logging.Formatter(format))
    logging.getLogger().addHandler(h)
    h.setLevel(level)
    return h


def add_rotating_file_handler(
    name, mode, max_size, nb, level=logging.INFO, format=FULL_FORMAT
):
    h = logging.handlers.RotatingFileHandler(name, mode, max_size, nb)
    return _configure_handler(h, format, level)


def add_console_handler(level=logging.INFO, format=SHORT_FORMAT):
    h = logging.StreamHandler(sys.stdout)
    return _configure_handler(h, format, level)


def clear_handlers():
    root = logging.getLogger()
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()


debug = _NeverCrash(logging.debug)
info = _NeverCrash(logging.info)
warning = _NeverCrash(logging.warning)
error = _NeverCrash(logging.error)
critical = _NeverCrash(logging.critical)
exception = _NeverCrash(logging.exception)

logging.getLogger().setLevel(logging.DEBUG)
