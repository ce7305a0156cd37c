"""users, appointments and payment orders

Revision ID: 0001_initial_booking_schema
Revises:
Create Date: 2025-04-01
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_booking_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("first_name", sa.String(length=100), nullable=False),
            sa.Column("last_name", sa.String(length=100), nullable=False),
            sa.Column("phone", sa.String(length=30), nullable=True),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("date_of_birth", sa.Date(), nullable=True),
            sa.Column("time_of_birth", sa.String(length=5), nullable=True),
            sa.Column("gender", sa.String(length=20), nullable=True),
            sa.Column("birth_city", sa.String(length=100), nullable=True),
            sa.Column("birth_state", sa.String(length=100), nullable=True),
            sa.Column("birth_country", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not inspector.has_table("appointments"):
        op.create_table(
            "appointments",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("appointment_date", sa.Date(), nullable=False),
            sa.Column("appointment_time", sa.String(length=5), nullable=False),
            sa.Column("slot_key", sa.String(length=20), nullable=True, unique=True),
            sa.Column("consultation_type", sa.String(length=50), nullable=False),
            sa.Column("package_id", sa.String(length=50), nullable=False),
            sa.Column("package_name", sa.String(length=255), nullable=False),
            sa.Column("package_duration", sa.Integer(), nullable=False),
            sa.Column("package_price", sa.Integer(), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False, server_default="INR"),
            sa.Column("client_questions", sa.Text(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("video_room_name", sa.String(length=255), nullable=True),
            sa.Column("video_room_url", sa.String(length=512), nullable=True),
            sa.Column("call_started_at", sa.DateTime(), nullable=True),
            sa.Column("call_ended_at", sa.DateTime(), nullable=True),
            sa.Column("rating", sa.Integer(), nullable=True),
            sa.Column("review", sa.Text(), nullable=True),
            sa.Column("confirmed_at", sa.DateTime(), nullable=True),
            sa.Column("cancelled_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_appointments_user_id", "appointments", ["user_id"])
        op.create_index("ix_appointments_appointment_date", "appointments", ["appointment_date"])

    if not inspector.has_table("payment_orders"):
        op.create_table(
            "payment_orders",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("appointment_id", sa.String(length=36), sa.ForeignKey("appointments.id"), nullable=False),
            sa.Column("gateway_order_id", sa.String(length=100), nullable=False, unique=True),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False, server_default="INR"),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="created"),
            sa.Column("gateway_payment_id", sa.String(length=100), nullable=True),
            sa.Column("gateway_signature", sa.String(length=255), nullable=True),
            sa.Column("failure_reason", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("paid_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_payment_orders_appointment_id", "payment_orders", ["appointment_id"])


def downgrade() -> None:
    op.drop_index("ix_payment_orders_appointment_id", table_name="payment_orders")
    op.drop_table("payment_orders")
    op.drop_index("ix_appointments_appointment_date", table_name="appointments")
    op.drop_index("ix_appointments_user_id", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
