import logging
from collections import namedtuple
from foxremote.config import PROTOCOL_VERSION
from foxremote.errors import NotFound, TargetVanished

log = logging.getLogger(__name__)

Candidate = namedtuple("Candidate", "window user profile program")


def client_window(knox, window):
    """The actual client window underneath what may be a window manager
    frame, like XmuClientWindow(): the first child with WM_STATE, or the
    window itself."""
    for c in knox.children(window):
        try:
            if knox.get_prop(c, "WM_STATE") is not None:
                return c
        except TargetVanished:
            continue
    return window


def profile_match(value, wanted):
    """Firefox used to publish the bare profile name and now publishes the
    profile directory, e.g. /home/u/.mozilla/firefox/xyz.default. A bare
    name matches such a path if it is the last path component or the part
    after its last dot."""
    if not wanted or value == wanted:
        return True
    if value is None or not value.startswith("/") or "/" in wanted:
        return False
    last = value.rstrip("/").rsplit("/", 1)[-1]
    return last == wanted or last.endswith("." + wanted)


class WindowFinder:
    class StringCompare:
        def __init__(self, wanted):
            self.wanted = wanted or ""
        def __call__(self, value):
            # unset wanted value matches anything, even a missing property
            return not self.wanted or value == self.wanted
        def __repr__(self):
            return repr(self.wanted)

    class ProfileCompare(StringCompare):
        def __call__(self, value):
            return profile_match(value, self.wanted)

    def __init__(self, knox, names, user="", profile="", program="",
                 version=PROTOCOL_VERSION):
        self.knox = knox
        self.names = names
        self.version = version
        self.matchers = [
            (names.user, self.StringCompare(user)),
            (names.profile, self.ProfileCompare(profile)),
            (names.program, self.StringCompare(program)),
        ]
        self.wrong_version = None

    def toplevel_windows(self):
        """Client windows of all the children of the root window, which
        nominally will contain the Firefox window we are looking for."""
        for w in self.knox.children(self.knox.root):
            try:
                yield client_window(self.knox, w)
            except TargetVanished:
                continue

    def versioned_windows(self):
        self.wrong_version = None
        for win in self.toplevel_windows():
            try:
                version = self.knox.get_text_prop(win, self.names.version)
            except TargetVanished:
                continue
            if version is None:
                continue
            if version != self.version:
                log.debug("window 0x%x speaks protocol %s", win.id, version)
                self.wrong_version = version
                continue
            yield win

    def matches(self, window):
        for (name, m) in self.matchers:
            if not m(self.knox.get_text_prop(window, name)):
                return False
        return True

    def find(self):
        """Find the Firefox window for a specific user, profile, and
        program (if they are set). The window must have the exact
        correct version."""
        for win in self.versioned_windows():
            try:
                if self.matches(win):
                    log.debug("found window 0x%x", win.id)
                    return win
            except TargetVanished:
                continue
        if self.wrong_version is not None:
            log.warning("found a protocol %s Firefox window but no %s one.",
                        self.wrong_version, self.version)
        raise NotFound(wrong_version=self.wrong_version)

    def candidates(self):
        for win in self.versioned_windows():
            try:
                yield Candidate(win,
                                self.knox.get_text_prop(win, self.names.user),
                                self.knox.get_text_prop(win, self.names.profile),
                                self.knox.get_text_prop(win, self.names.program))
            except TargetVanished:
                continue
