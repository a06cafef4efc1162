class VerwatchError(RuntimeError):
    """Base error for version checking and its collaborators."""


class NotFoundError(VerwatchError):
    pass


class RemoteApiError(VerwatchError):
    """A registry answered with a non-success status or an unusable payload."""


class ProbeError(VerwatchError):
    """The local version command could not run or printed no version."""


class LockError(VerwatchError):
    """A cache or store lock could not be acquired; fatal to the current operation only."""


class NotificationError(VerwatchError):
    pass
