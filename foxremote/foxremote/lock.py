import logging
import socket
from foxremote.errors import TargetVanished, PropertyWriteFailure
from foxremote.watch import Outcome

log = logging.getLogger(__name__)


class Lock:
    """The remote control lock on a Firefox window.

    The lock property normally does not exist and you take the lock by
    setting it. Testing and setting happen with the server grabbed so no
    one else can do the same at the same time. Nothing records who holds
    it, so release() just deletes it.
    """

    def __init__(self, knox, window, names, force=False, token=None):
        self.knox = knox
        self.window = knox.get_window(window)
        self.names = names
        self.force = force
        if token is None:
            token = "foxremote on %s" % socket.gethostname()
        self.token = token

    def try_lock(self):
        """One attempt at taking the lock. Returns True on success."""
        with self.knox.grabbed():
            value = self.knox.get_prop(self.window, self.names.lock)
            if value:
                return False
            self.knox.set_prop(self.window, self.names.lock, self.token)
            return True

    def acquire(self):
        # The watch goes up before the first attempt, otherwise a release
        # between a failed attempt and the wait would never wake us up.
        with self.knox.watch(self.window, self.names.lock) as watch:
            while True:
                try:
                    if self.try_lock():
                        break
                except PropertyWriteFailure:
                    self.release()
                    raise
                log.info("window 0x%x is locked by %r, waiting",
                         self.window.id, self.holder())
                outcome = watch.wait()
                if outcome is None or outcome.kind == Outcome.DESTROYED:
                    raise TargetVanished(self.window.id)
                # Whatever the change was, the next attempt finds out
                # whether the lock is free.
        log.debug("locked 0x%x", self.window.id)

    def holder(self):
        try:
            value = self.knox.get_prop(self.window, self.names.lock)
        except TargetVanished:
            return None
        return value.decode("utf-8", "replace") if value else None

    def release(self):
        """Unconditionally drop the lock. We are assumed to own it since
        there is no way to check."""
        self.knox.delete_prop(self.window, self.names.lock)
        log.debug("unlocked 0x%x", self.window.id)

    def __enter__(self):
        if self.force:
            # Carry on without the lock; release() still happens, which
            # unsticks a Firefox left locked by someone else.
            log.debug("not locking 0x%x (forced)", self.window.id)
        else:
            self.acquire()
        return self

    def __exit__(self, *exc_info):
        self.release()
