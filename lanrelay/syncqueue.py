import threading

from .lib.log import debug, warning
from .masterserver import MasterserverError


class SyncQueue:
    """Actions waiting to be sent to the masterserver, in arrival order.

    send is called with a list of actions and raises MasterserverError
    on failure. A failed batch is dropped: the next ticks and heartbeats
    will announce the servers again.
    """

    def __init__(self, send):
        self._send = send
        self._actions = []
        self.last_flush_failed = False

    def __len__(self):
        return len(self._actions)

    def enqueue(self, action):
        self._actions.append(action)

    def extend(self, actions):
        for action in actions:
            self.enqueue(action)

    def take(self):
        """Return the pending actions and start a new batch."""
        batch, self._actions = self._actions, []
        return batch

    def _deliver(self, batch):
        try:
            self._send(batch)
        except MasterserverError as e:
            warning("%s (batch dropped)", e)
            self.last_flush_failed = True
            return False
        debug("%s actions sent", len(batch))
        self.last_flush_failed = False
        return True

    def flush(self):
        """Send the pending actions and wait for the result.

        Return None if there was nothing to send, else True or False.
        """
        batch = self.take()
        if not batch:
            return None
        return self._deliver(batch)

    def flush_in_background(self):
        """Send the pending actions without waiting.

        The batch is taken now, so the actions enqueued during the
        request go to the next batch. Return the thread or None.
        """
        batch = self.take()
        if not batch:
            return None
        t = threading.Thread(target=self._deliver, args=(batch,), daemon=True)
        t.start()
        return t
