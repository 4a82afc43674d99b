from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.ems.models import Base

if TYPE_CHECKING:
    from app.ems.modules.professions.models import Profession


class DepartmentProfession(Base):
    """Which professions may be assigned to employees of a department."""

    __tablename__ = "department_professions"
    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True)
    profession_id: Mapped[int] = mapped_column(ForeignKey("professions.id", ondelete="CASCADE"), primary_key=True)


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (Index("idx_departments_name", "name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    professions: Mapped[list["Profession"]] = relationship(
        secondary="department_professions",
        back_populates="departments",
        lazy="selectin",
        order_by="Profession.name",
    )
