from threading import Event as _Event, Thread as _Thread


class Ticker(_Thread):
    """Call a function every number of seconds:

    t = Ticker(30.0, f, args=[], kwargs={})
    t.start()
    t.cancel() # stop the ticker's action

    The first call happens one interval after start().
    A ticker cannot be restarted: to change the interval, cancel it
    and start a new one.
    """

    daemon = True

    def __init__(self, interval, function, args=(), kwargs=None):
        _Thread.__init__(self)
        if interval <= 0:
            raise ValueError("interval must be positive: %r" % interval)
        self.interval = interval
        self.function = function
        self.args = args
        self.kwargs = kwargs or {}
        self.finished = _Event()

    def cancel(self):
        """Stop the ticker"""
        self.finished.set()

    @property
    def is_cancelled(self):
        return self.finished.is_set()

    def run(self):
        while not self.finished.wait(self.interval):
            self.function(*self.args, **self.kwargs)
