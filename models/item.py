from sqlalchemy import Column, Integer, String, Boolean, Float, Date, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from .database import Base
import enum


class ItemStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    CHECKED_OUT = "CHECKED_OUT"
    USED = "USED"


class Item(Base):
    """Itens do inventário (soltos no cômodo ou dentro de uma caixa)"""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    box_id = Column(Integer, ForeignKey("boxes.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    value = Column(Float, nullable=True)
    condition = Column(String, nullable=True)
    expiration_date = Column(Date, nullable=True)
    status = Column(SQLEnum(ItemStatus), default=ItemStatus.AVAILABLE, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    room = relationship("Room", back_populates="items")
    box = relationship("Box", back_populates="items")
