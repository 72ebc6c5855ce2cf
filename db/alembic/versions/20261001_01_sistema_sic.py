"""
# Nombre de archivo: 20261001_01_sistema_sic.py
# Ubicación de archivo: db/alembic/versions/20261001_01_sistema_sic.py
# Descripción: Crea las tablas de registros de servicio, usuarios, sesiones, recuperación y auditoría
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261001_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "service_records",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("operator_name", sa.String(length=128), nullable=False),
        sa.Column("technician_name", sa.String(length=128), nullable=False),
        sa.Column("company_name", sa.String(length=128), nullable=False),
        sa.Column("contract_number", sa.String(length=64), nullable=False),
        sa.Column("service_type", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=True),
        sa.Column("neighborhood", sa.String(length=128), nullable=True),
        sa.Column("cto_location", sa.String(length=255), nullable=True),
        sa.Column("area_cx", sa.String(length=64), nullable=True),
        sa.Column("available_slots", sa.String(length=32), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=True),
        sa.Column("visited_cxs", sa.Text(), nullable=True),
        sa.Column("general_comments", sa.Text(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_service_records_operator_name", "service_records", ["operator_name"])
    op.create_index("ix_service_records_contract_number", "service_records", ["contract_number"])
    op.create_index("ix_service_records_service_type", "service_records", ["service_type"])
    op.create_index("ix_service_records_created_at", "service_records", ["created_at"])
    op.create_index("ix_service_records_neighborhood", "service_records", ["neighborhood"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=128), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_sign_in_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "auth_sessions",
        sa.Column("token", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "security_questions",
        sa.Column("email", sa.String(length=255), primary_key=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("failed_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_until", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "password_reset_codes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=12), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_password_reset_codes_email", "password_reset_codes", ["email"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("table_name", sa.String(length=64), nullable=False),
        sa.Column("record_id", sa.String(length=64), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_user_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_password_reset_codes_email", table_name="password_reset_codes")
    op.drop_table("password_reset_codes")
    op.drop_table("security_questions")
    op.drop_index("ix_auth_sessions_user_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    for columna in ("neighborhood", "created_at", "service_type", "contract_number", "operator_name"):
        op.drop_index(f"ix_service_records_{columna}", table_name="service_records")
    op.drop_table("service_records")
