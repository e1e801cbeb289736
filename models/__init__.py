from .database import Base, get_db, engine
from .room import Room
from .rack import Rack
from .position import Position
from .box import Box
from .item import Item, ItemStatus
from .movement import Movement, MovementType

__all__ = [
    "Base", "get_db", "engine", "Room", "Rack", "Position", "Box",
    "Item", "ItemStatus", "Movement", "MovementType",
]
