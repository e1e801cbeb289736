from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from .database import Base


class Position(Base):
    """Posições individuais de uma prateleira (até 4 caixas: 2 na frente + 2 atrás)"""
    __tablename__ = "positions"

    id = Column(Integer, primary_key=True, index=True)
    rack_id = Column(Integer, ForeignKey("racks.id"), nullable=False, index=True)
    shelf_number = Column(Integer, nullable=False)
    position_number = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False, default=4)

    rack = relationship("Rack", back_populates="positions")
    boxes = relationship("Box", back_populates="position")

    __table_args__ = (
        UniqueConstraint("rack_id", "shelf_number", "position_number", name="uq_rack_shelf_position"),
        CheckConstraint("capacity BETWEEN 1 AND 4", name="ck_position_capacity"),
    )

    @property
    def code(self) -> str:
        """Código legível, ex: "S2-P3" """
        return f"S{self.shelf_number}-P{self.position_number}"
