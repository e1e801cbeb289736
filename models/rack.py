from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from .database import Base


class Rack(Base):
    """Estantes dentro de um cômodo

    - Modo uniforme: max_shelves × positions_per_shelf (shelf_config nulo)
    - Modo avançado: shelf_config = [{"shelf_number": 1, "position_count": 6}, ...]
    """
    __tablename__ = "racks"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    rack_number = Column(Integer, nullable=False)
    max_shelves = Column(Integer, nullable=False, default=5)
    positions_per_shelf = Column(Integer, nullable=False, default=6)
    shelf_config = Column(JSON, nullable=True)
    config_locked = Column(Boolean, default=False, nullable=False)
    created_by = Column(String, nullable=True)

    room = relationship("Room", back_populates="racks")
    positions = relationship("Position", back_populates="rack", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("room_id", "rack_number", name="uq_room_rack_number"),
    )

    @property
    def uses_advanced_config(self) -> bool:
        return self.shelf_config is not None
