from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.ems.models import Base

if TYPE_CHECKING:
    from app.ems.modules.departments.models import Department
    from app.ems.modules.professions.models import Profession


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (
        Index("idx_employees_name", "name"),
        Index("idx_employees_department", "department_id"),
        Index("idx_employees_profession", "profession_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # RESTRICT: a department/profession in use cannot disappear under an employee
    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False)
    profession_id: Mapped[int] = mapped_column(ForeignKey("professions.id", ondelete="RESTRICT"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    department: Mapped["Department"] = relationship("Department", lazy="selectin")
    profession: Mapped["Profession"] = relationship("Profession", lazy="selectin")
