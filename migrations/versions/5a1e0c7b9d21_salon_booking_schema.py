"""salon booking schema

Revision ID: 5a1e0c7b9d21
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5a1e0c7b9d21"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("specialty", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("employees", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_employees_name"), ["name"], unique=True)
        batch_op.create_index(batch_op.f("ix_employees_email"), ["email"], unique=True)

    op.create_table(
        "employee_roles",
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.PrimaryKeyConstraint("employee_id", "role_id"),
    )

    op.create_table(
        "technician_aliases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("fragment", sa.String(length=80), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fragment"),
    )
    with op.batch_alter_table("technician_aliases", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_technician_aliases_employee_id"), ["employee_id"], unique=False)

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("sessions", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_sessions_employee_id"), ["employee_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_sessions_token_hash"), ["token_hash"], unique=True)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity", sa.String(length=80), nullable=True),
        sa.Column("entity_id", sa.String(length=80), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_first_name", sa.String(length=120), nullable=False),
        sa.Column("customer_last_name", sa.String(length=120), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.String(length=20), nullable=False),
        sa.Column("start_time", sa.String(length=20), nullable=True),
        sa.Column("end_time", sa.String(length=20), nullable=True),
        sa.Column("total_duration", sa.Integer(), nullable=False),
        sa.Column("services", sa.JSON(), nullable=False),
        sa.Column("technicians", sa.JSON(), nullable=True),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("total_price_cents", sa.Integer(), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("appointment_status", sa.String(length=20), nullable=False),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_setup_intent_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("no_show_policy_accepted", sa.Boolean(), nullable=False),
        sa.Column("employee_notes", sa.Text(), nullable=True),
        sa.Column("last_updated_by", sa.Integer(), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.Column("segment", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "stripe_session_id IS NULL OR stripe_setup_intent_id IS NULL",
            name="ck_booking_single_payment_linkage",
        ),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["last_updated_by"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", "segment", name="uq_booking_payment_event_segment"),
    )
    with op.batch_alter_table("bookings", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_bookings_customer_email"), ["customer_email"], unique=False)
        batch_op.create_index(batch_op.f("ix_bookings_appointment_date"), ["appointment_date"], unique=False)
        batch_op.create_index(batch_op.f("ix_bookings_employee_id"), ["employee_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_bookings_stripe_session_id"), ["stripe_session_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_bookings_stripe_setup_intent_id"), ["stripe_setup_intent_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_bookings_idempotency_key"), ["idempotency_key"], unique=False)

    op.create_table(
        "booking_updates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("status_type", sa.String(length=20), nullable=False),
        sa.Column("previous_status", sa.String(length=20), nullable=True),
        sa.Column("new_status", sa.String(length=20), nullable=True),
        sa.Column("payment_previous_status", sa.String(length=20), nullable=True),
        sa.Column("payment_new_status", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("booking_updates", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_booking_updates_booking_id"), ["booking_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_booking_updates_employee_id"), ["employee_id"], unique=False)

    op.create_table(
        "pending_payment_setups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("setup_intent_id", sa.String(length=255), nullable=False),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("booking_ids_json", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("pending_payment_setups", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_pending_payment_setups_setup_intent_id"), ["setup_intent_id"], unique=True)

    op.create_table(
        "email_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=True),
        sa.Column("recipient", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("email_type", sa.String(length=40), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("email_logs", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_email_logs_booking_id"), ["booking_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_email_logs_email_type"), ["email_type"], unique=False)


def downgrade():
    with op.batch_alter_table("email_logs", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_email_logs_email_type"))
        batch_op.drop_index(batch_op.f("ix_email_logs_booking_id"))
    op.drop_table("email_logs")

    with op.batch_alter_table("pending_payment_setups", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_pending_payment_setups_setup_intent_id"))
    op.drop_table("pending_payment_setups")

    with op.batch_alter_table("booking_updates", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_booking_updates_employee_id"))
        batch_op.drop_index(batch_op.f("ix_booking_updates_booking_id"))
    op.drop_table("booking_updates")

    with op.batch_alter_table("bookings", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_bookings_idempotency_key"))
        batch_op.drop_index(batch_op.f("ix_bookings_stripe_setup_intent_id"))
        batch_op.drop_index(batch_op.f("ix_bookings_stripe_session_id"))
        batch_op.drop_index(batch_op.f("ix_bookings_employee_id"))
        batch_op.drop_index(batch_op.f("ix_bookings_appointment_date"))
        batch_op.drop_index(batch_op.f("ix_bookings_customer_email"))
    op.drop_table("bookings")

    op.drop_table("audit_logs")

    with op.batch_alter_table("sessions", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_sessions_token_hash"))
        batch_op.drop_index(batch_op.f("ix_sessions_employee_id"))
    op.drop_table("sessions")

    with op.batch_alter_table("technician_aliases", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_technician_aliases_employee_id"))
    op.drop_table("technician_aliases")

    op.drop_table("employee_roles")

    with op.batch_alter_table("employees", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_employees_email"))
        batch_op.drop_index(batch_op.f("ix_employees_name"))
    op.drop_table("employees")

    op.drop_table("roles")
