import logging
import os
from collections import namedtuple
from foxremote import cmdline
from foxremote.config import PropertyNames
from foxremote.finder import WindowFinder
from foxremote.lock import Lock
from foxremote.watch import Outcome

log = logging.getLogger(__name__)

Criteria = namedtuple("Criteria", "user profile program")
Criteria.__new__.__defaults__ = ("", "default", "firefox")


def current_directory():
    try:
        return os.getcwd()
    except OSError as e:
        log.warning("cannot get current directory: %s", e)
        return "/"


class Session:
    """Find a Firefox window, lock it, hand it a command line and collect
    the response."""

    # Firefox expects its own name as argv[0], whatever program property
    # the window was matched with.
    PROGRAM = "firefox"

    def __init__(self, knox, names=None):
        self.knox = knox
        self.names = names or PropertyNames.from_prefix()

    def finder(self, criteria):
        return WindowFinder(self.knox, self.names, *criteria)

    def find(self, criteria=None):
        return self.finder(criteria or Criteria()).find()

    def run(self, criteria, extra_args, force=False, pwd=None):
        return self.submit(self.find(criteria), extra_args, force=force, pwd=pwd)

    def submit(self, window, extra_args, force=False, pwd=None):
        """Send ``firefox extra_args...`` to the window and return its
        response, or "" if there was none.

        With force, the lock is not taken but is still cleared afterwards,
        which unsticks a Firefox that was left locked.
        """
        window = self.knox.get_window(window)
        if pwd is None:
            pwd = current_directory()
        command = cmdline.encode(pwd, [self.PROGRAM] + list(extra_args))

        # The response watch has to exist before the command is written.
        with self.knox.watch(window, self.names.response) as watch:
            with Lock(self.knox, window, self.names, force=force):
                self.knox.set_prop(window, self.names.commandline, command)
                log.debug("sent %d byte command line to 0x%x",
                          len(command), window.id)
                # Responses queued before our write are someone else's.
                outcome = watch.wait(after=self.names.commandline)
        return self.response(outcome)

    def response(self, outcome):
        # In theory a response starting with '1' means 'in progress'.
        # Modern Firefox never sends one, so it is not special here.
        if outcome is None or outcome.kind == Outcome.DESTROYED:
            log.warning("Firefox window disappeared before responding")
            return ""
        if outcome.kind != Outcome.NEW_VALUE or outcome.value is None:
            return ""
        resp = outcome.value.decode("utf-8", "replace")
        log.debug("response: %s", resp)
        return resp
