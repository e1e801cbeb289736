from .rooms import router as rooms_router
from .racks import router as racks_router
from .boxes import router as boxes_router
from .items import router as items_router
from .safety import router as safety_router

__all__ = ["rooms_router", "racks_router", "boxes_router", "items_router", "safety_router"]
