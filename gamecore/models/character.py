from typing import List
from datetime import datetime
from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from gamecore.core.database import Base


class Character(Base):
    __tablename__ = "characters"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(64), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # --- Relationships ---
    job_classes: Mapped[List["CharacterJobClass"]] = relationship(
        "gamecore.models.job_class.CharacterJobClass",
        back_populates="character",
        lazy="selectin",
        cascade="all, delete-orphan"
    )
    warehouses: Mapped[List["Warehouse"]] = relationship(
        "gamecore.models.item.Warehouse",
        back_populates="character",
        lazy="selectin",
        cascade="all, delete-orphan"
    )

    @property
    def current_job(self):
        """is_current=True 인 직업 (없으면 None)"""
        return next((job for job in self.job_classes if job.is_current), None)
