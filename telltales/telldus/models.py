"""
Telldus Live data models.

Controllers, devices and sensors are flattened into display rows
(``Entry``) for the listing commands.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Category(str, Enum):
    """Kind of Telldus Live resource."""

    CONTROLLER = "controller"
    DEVICE = "device"
    SENSOR = "sensor"


@dataclass
class Entry:
    """
    One row of a resource listing.

    Attributes:
        category: Resource kind
        id: Telldus Live identifier ("?" when the payload had none)
        name: Display name
        details: Comma-separated extra information, None if nothing to show
    """

    category: Category
    id: str
    name: str
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "id": self.id,
            "name": self.name,
            "details": self.details,
        }
