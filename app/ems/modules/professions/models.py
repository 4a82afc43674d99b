from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.ems.models import Base

if TYPE_CHECKING:
    from app.ems.modules.departments.models import Department


class Profession(Base):
    __tablename__ = "professions"
    __table_args__ = (Index("idx_professions_name", "name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    departments: Mapped[list["Department"]] = relationship(
        secondary="department_professions",
        back_populates="professions",
        lazy="selectin",
    )
