from collections import namedtuple
import logging
from Xlib import X
from foxremote.errors import TargetVanished
from foxremote.event import Event, EventLoop

log = logging.getLogger(__name__)


class Outcome(namedtuple("Outcome", "kind value")):
    """What a PropertyWatch saw. value is only set for NEW_VALUE."""
    NEW_VALUE = 'new-value'
    DELETED = 'deleted'
    DESTROYED = 'destroyed'


def _window_id(w):
    return getattr(w, 'id', w)


class PropertyWatch:
    """Subscription to changes of one property on one window.

    Create it before doing whatever might race with the change you are
    waiting for: events are only delivered from the moment the watch
    exists, and there is no way to subscribe and read atomically.
    """

    def __init__(self, knox, window, name):
        self.knox = knox
        self.window = knox.get_window(window)
        self.name = name
        self.atom = knox.atom(name)
        self.closed = False
        self.after = None
        knox.listen(self.window)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        if not self.closed:
            self.closed = True
            self.knox.unlisten(self.window)

    def next_event(self, e, event_loop):
        # e.fd is knox
        while True:
            x = e.fd.next_event(wait=False)
            if x is None:
                break
            else:
                yield x

    def examine(self, x):
        if _window_id(getattr(x, 'window', None)) != self.window.id:
            return None
        if x.type == X.DestroyNotify:
            return Outcome(Outcome.DESTROYED, None)
        if self.after is not None:
            # X delivers events in order: nothing before this one can be
            # a reaction to what we wrote
            if (x.type == X.PropertyNotify and x.atom == self.after
                    and x.state == X.PropertyNewValue):
                self.after = None
            return None
        if x.type != X.PropertyNotify or x.atom != self.atom:
            return None
        if x.state != X.PropertyNewValue:
            return Outcome(Outcome.DELETED, None)
        try:
            return Outcome(Outcome.NEW_VALUE,
                           self.knox.get_prop(self.window, self.name))
        except TargetVanished:
            return Outcome(Outcome.DESTROYED, None)

    def wait(self, event_loop=None, after=None):
        """Block until the property changes or the window is destroyed.

        With after, changes are only counted once a new value of the
        property named by after has been seen on the window.
        """
        if self.closed:
            raise RuntimeError("wait on closed watch for %s" % self.name)
        if after is not None:
            self.after = self.knox.atom(after)
        if event_loop is None:
            event_loop = EventLoop()
        outcome = None
        handler_key = event_loop.register(
            Event.READABLE, self.next_event, fd=self.knox)
        log.debug("waiting for %s on 0x%x", self.name, self.window.id)
        try:
            for x in event_loop.process():
                outcome = self.examine(x)
                if outcome is not None:
                    event_loop.quit()
        finally:
            event_loop.unregister(handler_key)
        log.debug("%s on 0x%x: %s", self.name, self.window.id,
                  outcome.kind if outcome else None)
        return outcome
