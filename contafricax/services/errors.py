class NotFoundError(LookupError):
    """A referenced row does not exist."""
