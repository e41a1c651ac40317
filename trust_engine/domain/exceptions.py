"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class UnknownUserError(DomainException):
    """Requested user is not a node of the supplied network snapshot"""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id!r} is not part of the network")
        self.user_id = user_id
