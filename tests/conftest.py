"""
Shared test fixtures for foxremote tests: an in-memory X server holding
window properties, and clients talking to it through the same interface
as KnoX.
"""
import collections
from contextlib import contextmanager
from types import SimpleNamespace
import pytest
from Xlib import X
from foxremote import cmdline
from foxremote.config import PropertyNames, PROTOCOL_VERSION
from foxremote.errors import TargetVanished, PropertyWriteFailure
from foxremote.watch import PropertyWatch

ROOT = 1


class FakeWindow:
    def __init__(self, win_id):
        self.id = win_id

    def __eq__(self, other):
        return getattr(other, 'id', other) == self.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return "FakeWindow(0x%x)" % self.id


class FakeServer:
    def __init__(self):
        self.atoms = dict()
        self.props = collections.defaultdict(dict)
        self.tree = {ROOT: []}
        self.destroyed = set()
        self.clients = []
        self.grabber = None
        self.next_id = 0x100

    def intern(self, name, only_if_exists=False):
        if name not in self.atoms:
            if only_if_exists:
                return X.NONE
            self.atoms[name] = 100 + len(self.atoms)
        return self.atoms[name]

    def add_window(self, parent=ROOT, **props):
        win_id = self.next_id
        self.next_id += 1
        self.tree[win_id] = []
        self.tree[parent].append(win_id)
        for (name, value) in props.items():
            if isinstance(value, str):
                value = value.encode()
            self.props[win_id][name] = value
            self.intern(name)
        return FakeWindow(win_id)

    def check(self, win):
        if win.id in self.destroyed:
            raise TargetVanished(win.id)

    def check_grab(self, client):
        assert self.grabber in (None, client), \
            "request from another client while the server is grabbed"

    def change(self, client, win, name, value):
        self.check_grab(client)
        self.check(win)
        self.props[win.id][name] = value
        self.notify(win, SimpleNamespace(type=X.PropertyNotify, window=win,
                                         atom=self.intern(name),
                                         state=X.PropertyNewValue))

    def delete(self, client, win, name):
        self.check_grab(client)
        if win.id in self.destroyed or name not in self.props[win.id]:
            return
        del self.props[win.id][name]
        self.notify(win, SimpleNamespace(type=X.PropertyNotify, window=win,
                                         atom=self.intern(name),
                                         state=X.PropertyDelete))

    def destroy(self, win):
        self.destroyed.add(win.id)
        self.props.pop(win.id, None)
        self.notify(win, SimpleNamespace(type=X.DestroyNotify, window=win,
                                         event=win))

    def notify(self, win, event):
        for c in self.clients:
            if c.listening.get(win.id):
                c.queue.append(event)


class FakeKnoX:
    """One X client of a FakeServer.

    Functions in on_block run, one per call, whenever the client would
    block waiting for an event; they stand in for other clients acting
    meanwhile.
    """

    def __init__(self, server):
        self.server = server
        self.root = FakeWindow(ROOT)
        self.queue = collections.deque()
        self.listening = dict()
        self.on_block = []
        self.fail_writes = set()
        self.grabs = 0
        server.clients.append(self)

    def fileno(self):
        raise AssertionError("select() on a fake connection")

    def pending(self):
        if not self.queue and self.on_block:
            self.on_block.pop(0)()
        if not self.queue:
            raise AssertionError("client would block forever")
        return len(self.queue)

    def next_event(self, wait=True):
        if self.queue:
            return self.queue.popleft()
        assert not wait, "client would block forever"
        return None

    def atom(self, name, only_if_exists=False):
        return self.server.intern(name, only_if_exists)

    def get_window(self, win_id):
        if isinstance(win_id, int):
            return FakeWindow(win_id)
        return win_id

    def children(self, window):
        self.server.check(window)
        return [FakeWindow(w) for w in self.server.tree.get(window.id, [])]

    def get_prop(self, window, name):
        window = self.get_window(window)
        self.server.check(window)
        return self.server.props[window.id].get(name)

    def get_text_prop(self, window, name):
        value = self.get_prop(window, name)
        return None if value is None else value.decode()

    def set_prop(self, window, name, value):
        window = self.get_window(window)
        if isinstance(value, str):
            value = value.encode()
        if name in self.fail_writes:
            raise PropertyWriteFailure(name, "BadAlloc")
        self.server.change(self, window, name, value)

    def delete_prop(self, window, name):
        self.server.delete(self, self.get_window(window), name)

    @contextmanager
    def grabbed(self):
        assert self.server.grabber is None
        self.server.grabber = self
        self.grabs += 1
        try:
            yield self
        finally:
            self.server.grabber = None

    def listen(self, window):
        self.listening[window.id] = self.listening.get(window.id, 0) + 1

    def unlisten(self, window):
        self.listening[window.id] -= 1

    def watch(self, window, name):
        return PropertyWatch(self, window, name)

    def sync(self):
        pass


def firefox_responds(server, window, names, response=b"200 executed command",
                     seen=None):
    """What Firefox does on a command line: read it, answer."""
    firefox = FakeKnoX(server)

    def respond():
        data = server.props[window.id].get(names.commandline)
        if seen is not None:
            seen.append(cmdline.decode(data))
        firefox.set_prop(window, names.response, response)
    return respond


@pytest.fixture
def names():
    return PropertyNames.from_prefix("_MOZILLA")


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def knox(server):
    return FakeKnoX(server)


@pytest.fixture
def firefox_window(server, names):
    """A Firefox window under a window manager frame"""
    frame = server.add_window()
    return server.add_window(parent=frame.id, **{
        "WM_STATE": b"\x01\x00\x00\x00",
        names.version: PROTOCOL_VERSION,
        names.user: "u",
        names.profile: "/home/u/.mozilla/firefox/xyz.default",
        names.program: "firefox",
    })
