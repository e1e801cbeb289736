from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from .database import Base


class Room(Base):
    """Cômodos da casa (Garagem, Porão, Despensa...)

    Exclusão é lógica: is_active=False + deleted_at, com janela de recuperação.
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    color = Column(String, nullable=False, default="#3B82F6")
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    racks = relationship("Rack", back_populates="room", cascade="all, delete-orphan")
    boxes = relationship("Box", back_populates="room", cascade="all, delete-orphan")
    items = relationship("Item", back_populates="room", cascade="all, delete-orphan")
