class RemoteError(Exception):
    """Base of everything that stops a remote command from going through."""


class UsageError(RemoteError):
    pass


class NotFound(RemoteError):
    def __init__(self, message="can't find a running Firefox window.",
                 wrong_version=None):
        super().__init__(message)
        self.wrong_version = wrong_version


class TargetVanished(RemoteError):
    def __init__(self, window=None):
        if window is None:
            super().__init__("Firefox window disappeared")
        else:
            super().__init__("Firefox window 0x%x disappeared" % window)
        self.window = window


class PropertyWriteFailure(RemoteError):
    def __init__(self, name, cause=None):
        super().__init__("cannot set %s: %s" % (name, cause or "X error"))
        self.name = name
        self.cause = cause
