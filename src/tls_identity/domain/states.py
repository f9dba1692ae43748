from enum import StrEnum


class IdentityKind(StrEnum):
    SERVER = "server"
    CLIENT = "client"


class IssuanceState(StrEnum):
    """All possible states of an IssuanceCoordinator."""

    UNINITIALIZED = "uninitialized"
    SERVER_ISSUED = "server_issued"
    CLIENT_ISSUED = "client_issued"  # Terminal state


class IssuanceEvent(StrEnum):
    """All events that move an IssuanceCoordinator forward."""

    SERVER_IDENTITY_ISSUED = "server_identity_issued"
    CLIENT_IDENTITY_ISSUED = "client_identity_issued"
