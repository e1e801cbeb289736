from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from .database import Base


class Box(Base):
    """Caixas de um cômodo

    Uma caixa ocupa no máximo uma posição (position_id); sem posição ela está
    na área de staging.
    """
    __tablename__ = "boxes"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    box_number = Column(Integer, nullable=False)
    name = Column(String, nullable=True)
    description = Column(String, nullable=True)
    size = Column(String, nullable=False, default="S")
    type = Column(String, nullable=False, default="standard")
    is_staging = Column(Boolean, default=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    position_id = Column(Integer, ForeignKey("positions.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(String, nullable=True)

    room = relationship("Room", back_populates="boxes")
    position = relationship("Position", back_populates="boxes")
    items = relationship("Item", back_populates="box")

    __table_args__ = (
        # Número único apenas entre caixas ativas do cômodo
        Index(
            "uq_room_active_box_number",
            "room_id",
            "box_number",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )
