"""Errors surfaced to callers of the document pipeline."""


class OutputTargetUnavailable(Exception):
    """The print output cannot be opened; the batch is not started."""

    def __init__(self, target: str, reason: str = ''):
        self.target = target
        self.reason = reason
        message = f'Output target unavailable: {target}'
        if reason:
            message += f' ({reason})'
        super().__init__(message)
