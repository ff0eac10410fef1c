"""Ordering guard for cache reloads.

A reload takes a ticket before it awaits the store. When its response comes
back it is applied only if no newer request has already been applied, so an
older response arriving late can never overwrite a fresher one.
"""


class ResponseSequencer:
    def __init__(self) -> None:
        self._issued = 0
        self._applied = 0

    def issue(self) -> int:
        self._issued += 1
        return self._issued

    def accept(self, ticket: int) -> bool:
        if ticket < self._applied:
            return False
        self._applied = ticket
        return True

    @property
    def applied(self) -> int:
        return self._applied
