from abc import ABC, abstractmethod
from typing import Optional


class ForegroundAppSensor(ABC):
    """Platform capability reporting the app currently visible on the device.

    Gated by the OS usage-access grant. Implementations live in the platform
    layer; the client core only talks to this interface.
    """

    @abstractmethod
    async def has_permission(self) -> bool:
        """True when usage access has been granted."""

    @abstractmethod
    async def request_permission(self) -> None:
        """Open the OS settings screen where usage access is granted."""

    @abstractmethod
    async def get_foreground_app(self) -> Optional[str]:
        """Package id of the foreground app, or None when nothing is reported."""
