from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db


class Building(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    long: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str | None] = mapped_column(db.String(255))
    territory_id: Mapped[int | None] = mapped_column(Integer)
    last_modified: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    # doors are owned: removing one from the collection deletes its row
    doors = relationship(
        "Door",
        back_populates="building",
        cascade="all, delete-orphan",
        order_by="Door.position",
    )

    __table_args__ = (
        CheckConstraint("lat >= -90 AND lat <= 90", name="ck_building_lat_range"),
        CheckConstraint("long >= -180 AND long <= 180", name="ck_building_long_range"),
    )

    def __repr__(self):
        return f"<Building {self.id} ({self.lat}, {self.long})>"


class Door(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    building_id: Mapped[int] = mapped_column(ForeignKey("building.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    language_name: Mapped[str] = mapped_column(String(64), nullable=False, default="english")
    info_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    congregation_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    classification_id: Mapped[int | None] = mapped_column(ForeignKey("classification.id", ondelete="SET NULL"))

    building = relationship("Building", back_populates="doors")
    classification = relationship("Classification")

    __table_args__ = (
        Index("ix_door_building_position", "building_id", "position"),
    )

    def __repr__(self):
        return f"<Door {self.id} building={self.building_id} {self.info_text!r}>"
