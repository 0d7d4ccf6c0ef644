from .lib.log import info

ADD = "add"
UPDATE = "update"
DELETE = "delete"


class Action:
    """A change to send to the masterserver.

    The listing is a copy: later changes in the store don't affect it.
    """

    def __init__(self, kind, listing):
        if kind not in (ADD, UPDATE, DELETE):
            raise ValueError("unknown action: %r" % (kind,))
        self.kind = kind
        self.listing = listing.copy()

    def __repr__(self):
        return "<Action %s %r>" % (self.kind, self.listing)

    def __eq__(self, other):
        if isinstance(other, Action):
            return self.kind == other.kind and self.listing == other.listing
        return NotImplemented

    def as_json(self):
        return {"type": self.kind, "server": self.listing.as_json()}


class ListingStore:
    """The LAN servers currently known, by port."""

    def __init__(self):
        self._listings = {}

    def __len__(self):
        return len(self._listings)

    def __contains__(self, port):
        return port in self._listings

    def get(self, port):
        return self._listings.get(port)

    def reconcile(self, listing):
        """Apply a beacon reply. Return an Action or None."""
        current = self._listings.get(listing.port)
        listing = listing.copy()
        listing.silent_ticks = 0
        if current is None:
            self._listings[listing.port] = listing
            info("new server: %s (port %s)", listing.name, listing.port)
            return Action(ADD, listing)
        if not current.same_as(listing):
            self._listings[listing.port] = listing
            info("server changed: %s (port %s)", listing.name, listing.port)
            return Action(UPDATE, listing)
        current.silent_ticks = 0

    def expire(self, threshold):
        """Count one more silent tick for every listing.

        Must be called once per tick, after the replies of the tick.
        A listing silent for more than threshold ticks is removed.
        """
        actions = []
        for port, listing in list(self._listings.items()):
            listing.silent_ticks += 1
            if listing.silent_ticks > threshold:
                del self._listings[port]
                info("server expired: %s (port %s)", listing.name, port)
                actions.append(Action(DELETE, listing))
        return actions

    def snapshot(self):
        return [listing.copy() for listing in self._listings.values()]

    def clear(self):
        actions = [Action(DELETE, listing) for listing in self._listings.values()]
        self._listings = {}
        return actions
