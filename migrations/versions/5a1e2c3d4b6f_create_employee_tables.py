"""create users, departments, professions and employees tables

Revision ID: 5a1e2c3d4b6f
Revises:
Create Date: 2026-10-19 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5a1e2c3d4b6f'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the baseline schema."""
    # Check if tables already exist (idempotent)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if "departments" not in existing_tables:
        op.create_table(
            "departments",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_departments_name", "departments", ["name"])

    if "professions" not in existing_tables:
        op.create_table(
            "professions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_professions_name", "professions", ["name"])

    if "department_professions" not in existing_tables:
        op.create_table(
            "department_professions",
            sa.Column(
                "department_id", sa.Integer(), sa.ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True
            ),
            sa.Column(
                "profession_id", sa.Integer(), sa.ForeignKey("professions.id", ondelete="CASCADE"), primary_key=True
            ),
        )

    if "employees" not in existing_tables:
        op.create_table(
            "employees",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("salary", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column(
                "department_id", sa.Integer(), sa.ForeignKey("departments.id", ondelete="RESTRICT"), nullable=False
            ),
            sa.Column(
                "profession_id", sa.Integer(), sa.ForeignKey("professions.id", ondelete="RESTRICT"), nullable=False
            ),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_employees_name", "employees", ["name"])
        op.create_index("idx_employees_department", "employees", ["department_id"])
        op.create_index("idx_employees_profession", "employees", ["profession_id"])


def downgrade() -> None:
    op.drop_table("employees")
    op.drop_table("department_professions")
    op.drop_table("professions")
    op.drop_table("departments")
    op.drop_table("users")
