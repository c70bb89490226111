"""Git gateway: the protocol the panel core talks to, and the shipped adapter."""

from .cli import GitCliGateway
from .protocol import GitGateway

__all__ = [
    "GitCliGateway",
    "GitGateway",
]
