import socket
import sys
import threading

from .beacon import QUERY
from .lib.log import debug, info, warning

BUFFER_SIZE = 4096


def _local_ip():
    # The beacon only answers the real local address, not localhost.
    try:
        for address in socket.gethostbyname_ex(socket.gethostname())[2]:
            if not address.startswith("127."):
                return address
    except OSError:
        warning("couldn't get the local IP")
    return "0.0.0.0"


def bind_address():
    if sys.platform == "win32":
        return _local_ip()
    return "0.0.0.0"


class Beacon:
    """The UDP socket shared by the queries and the replies."""

    def __init__(self, port, broadcast_address="255.255.255.255"):
        self.port = port
        self.broadcast_address = broadcast_address
        self._socket = None
        self._thread = None

    def open(self):
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        address = bind_address()
        s.bind((address, self.port))
        self._socket = s
        info("listening on %s:%s", address, self.port)

    def send_query(self):
        try:
            self._socket.sendto(QUERY, (self.broadcast_address, self.port))
        except OSError as e:
            warning("broadcast error: %s", e)

    def _read_loop(self, on_packet):
        while True:
            try:
                data, address = self._socket.recvfrom(BUFFER_SIZE)
            except OSError:
                debug("beacon socket closed")
                return
            on_packet(data)

    def start(self, on_packet):
        self._thread = threading.Thread(
            target=self._read_loop, args=(on_packet,), daemon=True
        )
        self._thread.start()

    def close(self):
        if self._socket is not None:
            self._socket.close()
            self._socket = None
