"""LAN beacon packets: the query to broadcast and the decoding of server replies.

Reply layout (offsets from the start of the datagram):

    10-11   message type: "SQ" (query) or "SR" (reply)
    20-23   IPv4 address of the server, one byte per digit
    26-27   server port, big-endian
    31      open slots
    39      max slots
    64-end  server name, UTF-8, padded with NUL bytes
"""

from .lib.log import debug

QUERY = bytes.fromhex("08014d5707db6b5fa5e553510d6fe2b0d4d90cb9")

REPLY = b"SR"
TYPE_OFFSET = 10
IP_OFFSET = 20
PORT_OFFSET = 26
OPEN_SLOTS_OFFSET = 31
MAX_SLOTS_OFFSET = 39
NAME_OFFSET = 64


class Listing:

    def __init__(self, name, players, max_players, port, silent_ticks=0, ip=None):
        self.name = name
        self.players = players
        self.max_players = max_players
        self.port = port
        self.silent_ticks = silent_ticks
        self.ip = ip  # not used: the servers only report their LAN address

    def __repr__(self):
        return "<Listing %r [%s / %s] port=%s silent=%s>" % (
            self.name,
            self.players,
            self.max_players,
            self.port,
            self.silent_ticks,
        )

    def _key(self):
        return self.name, self.players, self.max_players, self.port

    def same_as(self, other):
        """Compare what the masterserver sees (silent_ticks excluded)."""
        return self._key() == other._key()

    def __eq__(self, other):
        if isinstance(other, Listing):
            return self.same_as(other) and self.silent_ticks == other.silent_ticks
        return NotImplemented

    def copy(self):
        return Listing(
            self.name,
            self.players,
            self.max_players,
            self.port,
            self.silent_ticks,
            self.ip,
        )

    def as_json(self):
        return {
            "name": self.name,
            "players": self.players,
            "maxPlayers": self.max_players,
            "port": self.port,
            "timeout": self.silent_ticks,
        }


def is_reply(packet):
    return packet[TYPE_OFFSET : TYPE_OFFSET + 2] == REPLY


def decode(packet):
    """Return a Listing from a server reply, or None for anything else.

    The socket also receives the queries (ours and those of other
    clients), so a non-reply packet is normal and silently ignored.
    The player count is not checked: inconsistent slots give a negative
    number, passed on as is.
    """
    if not is_reply(packet):
        return None
    if len(packet) < NAME_OFFSET:
        debug("truncated beacon reply (%s bytes)", len(packet))
        return None
    ip = ".".join(str(b) for b in packet[IP_OFFSET : IP_OFFSET + 4])
    port = int.from_bytes(packet[PORT_OFFSET : PORT_OFFSET + 2], "big")
    if port == 0:
        debug("beacon reply without a port")
        return None
    open_slots = packet[OPEN_SLOTS_OFFSET]
    max_slots = packet[MAX_SLOTS_OFFSET]
    name = packet[NAME_OFFSET:].decode("utf-8", errors="replace").replace("\0", "")
    return Listing(name, max_slots - open_slots, max_slots, port, ip=ip)


def encode_reply(name, port, open_slots, max_slots, ip="0.0.0.0", padding=0):
    """Build a server reply. Used to simulate a server."""
    packet = bytearray(NAME_OFFSET)
    packet[TYPE_OFFSET : TYPE_OFFSET + 2] = REPLY
    packet[IP_OFFSET : IP_OFFSET + 4] = bytes(int(d) for d in ip.split("."))
    packet[PORT_OFFSET : PORT_OFFSET + 2] = port.to_bytes(2, "big")
    packet[OPEN_SLOTS_OFFSET] = open_slots
    packet[MAX_SLOTS_OFFSET] = max_slots
    return bytes(packet) + name.encode("utf-8") + b"\0" * padding
