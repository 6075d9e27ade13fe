"""Exceptions raised by the import session controller."""


class ContactHandoffError(Exception):
    """The contact sink failed to accept the records of a completed session.

    The session is reported as failed; what the sink kept is its own concern.
    """

    pass
