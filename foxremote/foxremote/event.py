import select
from types import GeneratorType


class Event:
    READABLE = 'readable'

    def __init__(self, name, **kwargs):
        self.name = name
        for (k, v) in kwargs.items():
            setattr(self, k, v)
        self._keys = set(kwargs.keys())

    def handles(self, e):
        return callable(getattr(self, 'handler', None)) and self == e

    def __eq__(a, b):
        """compare two events, but only the common subset if its attributes"""
        if not isinstance(b, Event) or a.name != b.name:
            return False
        for k in set(a._keys) & set(b._keys):
            if getattr(a, k) != getattr(b, k):
                return False
        return True

    def copy(self):
        data = dict()
        for k in self._keys:
            data[k] = getattr(self, k)
        return Event(self.name, **data)

    def update(self, b):
        for k in b._keys:
            setattr(self, k, getattr(b, k))
        return self


class EventLoop:
    """Single threaded dispatcher over select(). There are no timeouts: it
    blocks until a registered source is readable or a handler calls
    quit()."""

    def __init__(self):
        self.key = 1
        self.registry = dict()
        self._quit = False

    def register(self, event_name, handler=None, **data):
        h = Event(event_name, handler=handler, key=self.key, **data)
        k = h.key
        self.registry[k] = h
        self.key += 1
        return k

    def find_handler(self, k):
        return self.registry.get(k)

    def unregister(self, k):
        eh = self.find_handler(k)
        if eh is not None:
            del self.registry[eh.key]

    def quit(self):
        self._quit = True

    def handle(self, name, **data):
        event = Event(name, **data)
        for event_handler in list(self.registry.values()):
            if event_handler.handles(event):
                eh = event.copy().update(event_handler)
                return (True, eh.handler(eh, self))
        return (False, None)

    @staticmethod
    def _buffered(fd):
        # Xlib reads events off the socket while waiting for replies, so
        # select() alone would miss the ones already queued.
        pending = getattr(fd, 'pending', None)
        return bool(pending and pending())

    def process(self):
        """Call this in a for loop for values returned from handlers.
        """
        self._quit = False
        while not self._quit:
            readers = [eh.fd for eh in self.registry.values()
                       if eh.name == Event.READABLE]
            if not readers:
                return
            ready = [fd for fd in readers if self._buffered(fd)]
            if not ready:
                (ready, _, _) = select.select(readers, [], [])
            for fd in ready:
                (_, r) = self.handle(Event.READABLE, fd=fd)
                if isinstance(r, GeneratorType):
                    # stop pulling as soon as someone quits, whatever the
                    # handler has not produced yet stays queued
                    for v in r:
                        yield v
                        if self._quit:
                            r.close()
                            break
                elif r is not None:
                    yield r
                if self._quit:
                    break
