# errors.py


class ClusterGraphError(Exception):
    """Base class for errors raised by the cluster graph engine."""


class CommandBusyError(ClusterGraphError):
    """A mutation command is already in flight for this view."""


class ActionUnavailableError(ClusterGraphError):
    def __init__(self, action, selection_size: int):
        super().__init__(f"Action '{action}' is not available for the current selection ({selection_size} nodes).")
        self.action = action
        self.selection_size = selection_size


class MutationError(ClusterGraphError):
    def __init__(self, action, cause: BaseException):
        super().__init__(f"Action '{action}' failed: {cause}")
        self.action = action
        self.cause = cause


class RebuildError(ClusterGraphError):
    """The snapshot could not be read; the previous graph is kept."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Could not load clusters: {cause}")
        self.cause = cause
