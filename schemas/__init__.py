from .room_schemas import (
    RoomCreateRequest, RoomUpdateRequest, RoomResponse, RoomCounts,
    DeletedRoomResponse, DeletedRoomsResponse, RoomRestoreResponse, PurgeResponse,
    BulkDeleteRequest, BulkSafetyAnalysis, BulkDeleteResponse,
)
from .rack_schemas import (
    ShelfConfigEntry, RackCreateRequest, RackUpdateRequest, CapacityUpdateRequest,
    PositionResponse, RackResponse, NextRackNumberResponse,
)
from .box_schemas import (
    BoxCreateRequest, BoxUpdateRequest, PlacementRequest, BoxLocation, BoxResponse,
    BoxNumberSuggestionResponse, BoxNumberValidationResponse,
)
from .item_schemas import ItemCreateRequest, ItemMoveRequest, ItemResponse
from .safety_schemas import SafetyReport
from .movement_schemas import MovementResponse

__all__ = [
    "RoomCreateRequest",
    "RoomUpdateRequest",
    "RoomResponse",
    "RoomCounts",
    "DeletedRoomResponse",
    "DeletedRoomsResponse",
    "RoomRestoreResponse",
    "PurgeResponse",
    "BulkDeleteRequest",
    "BulkSafetyAnalysis",
    "BulkDeleteResponse",
    "ShelfConfigEntry",
    "RackCreateRequest",
    "RackUpdateRequest",
    "CapacityUpdateRequest",
    "PositionResponse",
    "RackResponse",
    "NextRackNumberResponse",
    "BoxCreateRequest",
    "BoxUpdateRequest",
    "PlacementRequest",
    "BoxLocation",
    "BoxResponse",
    "BoxNumberSuggestionResponse",
    "BoxNumberValidationResponse",
    "ItemCreateRequest",
    "ItemMoveRequest",
    "ItemResponse",
    "SafetyReport",
    "MovementResponse",
]
