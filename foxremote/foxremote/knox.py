from Xlib.display import Display
from Xlib import X, Xatom, error
from contextlib import contextmanager
import logging
from foxremote.errors import TargetVanished, PropertyWriteFailure
from foxremote.watch import PropertyWatch

log = logging.getLogger(__name__)

# Errors a request on a window that has gone away can produce.
GONE_ERRORS = (error.BadWindow, error.BadDrawable)


class KnoX:
    """The few X server operations the remote control protocol needs: typed
    property access on windows, server grabs, and the event stream."""

    LISTEN_MASK = X.PropertyChangeMask | X.StructureNotifyMask

    def __init__(self, display=None):
        if display is None:
            display = Display()
        self.display = display
        log.debug("Connected to X DISPLAY %r", self.display.get_display_name())
        self.display.set_error_handler(self.knox_error_handler)
        self.screen = self.display.screen()
        self.root = self.screen.root
        self.atoms = dict()
        self._listeners = dict()

    def fileno(self):
        """This function is here to make select work with this object"""
        return self.display.fileno()

    def pending(self):
        return self.display.pending_events()

    def next_event(self, wait=True):
        if (wait or self.display.pending_events()):
            return self.display.next_event()
        else:
            return None

    def knox_error_handler(self, err, *args):
        log.warning("X protocol error: %s", err)

    def atom(self, name, only_if_exists=False):
        if isinstance(name, int):
            return name
        if name in self.atoms:
            return self.atoms[name]
        a = self.display.get_atom(name, only_if_exists=only_if_exists)
        # an atom nobody interned yet may still show up later
        if a != X.NONE:
            self.atoms[name] = a
        return a

    def get_window(self, win_id):
        if isinstance(win_id, int):
            return self.display.create_resource_object('window', win_id)
        else:
            return win_id

    def children(self, window):
        window = self.get_window(window)
        try:
            return list(window.query_tree().children)
        except GONE_ERRORS:
            raise TargetVanished(window.id)

    def get_prop(self, window, name):
        """Raw value of a property, None if it is not set."""
        prop_name = self.atom(name, only_if_exists=True)
        if not prop_name:
            return None
        window = self.get_window(window)
        try:
            p = window.get_full_property(prop_name, X.AnyPropertyType)
        except GONE_ERRORS:
            raise TargetVanished(window.id)
        if p is None:
            return None
        if isinstance(p.value, bytes):
            return p.value
        if isinstance(p.value, str):
            return p.value.encode("latin-1")
        return bytes(p.value)

    def get_text_prop(self, window, name):
        value = self.get_prop(window, name)
        if value is None:
            return None
        return value.decode("utf-8", "replace")

    def set_prop(self, window, name, value, type_name=Xatom.STRING):
        """Replace an 8 bit property and wait until the server has done it."""
        window = self.get_window(window)
        if isinstance(value, str):
            value = value.encode("utf-8")
        catcher = error.CatchError()
        window.change_property(self.atom(name), self.atom(type_name),
                               8, value,
                               mode=X.PropModeReplace,
                               onerror=catcher)
        self.sync()
        if catcher.get_error():
            err = catcher.get_error()
            if isinstance(err, GONE_ERRORS):
                raise TargetVanished(window.id)
            raise PropertyWriteFailure(name, err)

    def delete_prop(self, window, name):
        """Deleting a property that is not there, or on a window that is
        gone, is fine."""
        prop_name = self.atom(name, only_if_exists=True)
        if not prop_name:
            return
        window = self.get_window(window)
        catcher = error.CatchError(*GONE_ERRORS)
        window.delete_property(prop_name, onerror=catcher)
        self.sync()

    @contextmanager
    def grabbed(self):
        """Nobody else gets to talk to the server inside this block, so keep
        it short."""
        self.display.grab_server()
        try:
            yield self
        finally:
            self.display.ungrab_server()
            self.sync()

    def listen(self, window):
        window = self.get_window(window)
        n = self._listeners.get(window.id, 0)
        if n == 0:
            self._select_input(window, self.LISTEN_MASK)
        self._listeners[window.id] = n + 1

    def unlisten(self, window):
        window = self.get_window(window)
        n = self._listeners.get(window.id, 0)
        if n <= 1:
            self._listeners.pop(window.id, None)
            if n == 1:
                self._select_input(window, X.NoEventMask)
        else:
            self._listeners[window.id] = n - 1

    def _select_input(self, window, mask):
        window.change_attributes(event_mask=mask,
                                 onerror=error.CatchError(*GONE_ERRORS))
        self.sync()

    def watch(self, window, name):
        return PropertyWatch(self, window, name)

    def flush(self):
        # send all pending requests
        self.display.flush()

    def sync(self):
        # flush and make sure everything is handled and processed or rejected by the server
        self.display.sync()
