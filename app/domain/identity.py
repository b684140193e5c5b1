"""Who is asking: the resolved request identity and what it may see.

``Owner`` is a closed set of three variants. Consumers branch on the
variant class (or ``kind``) instead of probing nullable ``user_id`` /
``device_id`` pairs.
"""

from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: UUID

    kind = "user"


@dataclass(frozen=True)
class AnonymousDevice:
    device_id: str

    kind = "device"


@dataclass(frozen=True)
class Unidentified:
    kind = "none"


Owner = Union[AuthenticatedUser, AnonymousDevice, Unidentified]


@dataclass(frozen=True)
class OwnerScope:
    """Row filter over a resource's owner columns.

    Exactly one field is set. A device scope only matches rows with no
    ``user_id``: once an account claims a book the device loses it.
    """

    user_id: Optional[UUID] = None
    device_id: Optional[str] = None

    def __post_init__(self):
        if (self.user_id is None) == (self.device_id is None):
            raise ValueError("OwnerScope needs exactly one of user_id or device_id")

    def owner_columns(self) -> dict:
        """Owner column values for a row created under this scope."""
        return {"user_id": self.user_id, "device_id": self.device_id}


@dataclass(frozen=True)
class QuotaStatus:
    limit: Optional[int]
    used: int
    remaining: Optional[int]
    requires_account: bool
