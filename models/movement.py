from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from .database import Base
import enum


class MovementType(str, enum.Enum):
    CREATE = "CREATE"
    PLACE = "PLACE"
    MOVE = "MOVE"
    STAGE = "STAGE"
    ROOM_CHANGE = "ROOM_CHANGE"
    RACK_RESTRUCTURE = "RACK_RESTRUCTURE"
    DELETE = "DELETE"


class Movement(Base):
    """Auditoria de movimentos de caixas e mudanças estruturais de estantes"""
    __tablename__ = "movements"

    id = Column(Integer, primary_key=True, index=True)
    box_id = Column(Integer, nullable=True, index=True)
    rack_id = Column(Integer, nullable=True, index=True)
    from_position_id = Column(Integer, nullable=True)
    to_position_id = Column(Integer, nullable=True)
    type = Column(SQLEnum(MovementType), nullable=False)
    actor = Column(String, nullable=False, default="anonymous")
    ts = Column(DateTime, server_default=func.now(), nullable=False)
    meta_json = Column(JSON, nullable=True)
