"""initial school inventory schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "room_statuses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
    )
    op.create_table(
        "room_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
    )
    op.create_table(
        "item_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(150), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_table(
        "schools",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        # FK to users added below, once users exists
        sa.Column("kepala_sekolah_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_schools_name", "schools", ["name"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("no_induk", sa.String(64), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.String(20), nullable=True, server_default="guru"),
        sa.Column(
            "school_id",
            sa.Integer(),
            sa.ForeignKey("schools.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.CheckConstraint(
            "role IN ('admin', 'kepala_sekolah', 'guru', 'staff', 'murid')",
            name="ck_users_role",
        ),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_no_induk", "users", ["no_induk"], unique=True)
    op.create_index("ix_users_phone", "users", ["phone"], unique=True)
    op.create_index("ix_users_school_id", "users", ["school_id"])

    with op.batch_alter_table("schools") as batch:
        batch.create_foreign_key(
            "fk_schools_kepala_sekolah_id",
            "users",
            ["kepala_sekolah_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column(
            "school_id",
            sa.Integer(),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "status_id",
            sa.Integer(),
            sa.ForeignKey("room_statuses.id"),
            nullable=False,
        ),
        sa.Column(
            "type_id", sa.Integer(), sa.ForeignKey("room_types.id"), nullable=False
        ),
        sa.Column(
            "responsible_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("floor", sa.String(50), nullable=True),
        sa.Column("building", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_rooms_school_id", "rooms", ["school_id"])

    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("item_categories.id"),
            nullable=False,
        ),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("condition", sa.String(50), nullable=True, server_default="Good"),
        sa.Column("acquisition_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
    )
    op.create_index("ix_items_name", "items", ["name"])
    op.create_index("ix_items_category_id", "items", ["category_id"])
    op.create_index("ix_items_room_id", "items", ["room_id"])

    op.create_table(
        "item_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("item_name", sa.String(200), nullable=False),
        sa.Column(
            "room_id",
            sa.Integer(),
            sa.ForeignKey("rooms.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action_type", sa.String(20), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("action_date", sa.DateTime(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "source_room_id",
            sa.Integer(),
            sa.ForeignKey("rooms.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "destination_room_id",
            sa.Integer(),
            sa.ForeignKey("rooms.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("source_room_name", sa.String(150), nullable=True),
        sa.Column("destination_room_name", sa.String(150), nullable=True),
        sa.CheckConstraint(
            "action_type IN ('add', 'delete', 'transfer', 'update')",
            name="ck_item_history_action_type",
        ),
    )
    op.create_index("ix_item_history_item_id", "item_history", ["item_id"])
    op.create_index("ix_item_history_room_id", "item_history", ["room_id"])
    op.create_index("ix_item_history_action_type", "item_history", ["action_type"])
    op.create_index("ix_item_history_action_date", "item_history", ["action_date"])

    op.create_table(
        "item_transfers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "destination_item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("item_name", sa.String(200), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column(
            "from_room_id",
            sa.Integer(),
            sa.ForeignKey("rooms.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "to_room_id",
            sa.Integer(),
            sa.ForeignKey("rooms.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "transferred_by_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("transfer_date", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "quantity > 0", name="ck_item_transfers_quantity_positive"
        ),
        sa.CheckConstraint(
            "from_room_id <> to_room_id", name="ck_item_transfers_distinct_rooms"
        ),
    )
    op.create_index("ix_item_transfers_item_id", "item_transfers", ["item_id"])
    op.create_index(
        "ix_item_transfers_destination_item_id",
        "item_transfers",
        ["destination_item_id"],
    )
    op.create_index("ix_item_transfers_from_room_id", "item_transfers", ["from_room_id"])
    op.create_index("ix_item_transfers_to_room_id", "item_transfers", ["to_room_id"])
    op.create_index(
        "ix_item_transfers_transfer_date", "item_transfers", ["transfer_date"]
    )


def downgrade() -> None:
    op.drop_table("item_transfers")
    op.drop_table("item_history")
    op.drop_table("items")
    op.drop_table("rooms")
    with op.batch_alter_table("schools") as batch:
        batch.drop_constraint("fk_schools_kepala_sekolah_id", type_="foreignkey")
    op.drop_table("users")
    op.drop_index("ix_schools_name", table_name="schools")
    op.drop_table("schools")
    op.drop_table("item_categories")
    op.drop_table("room_types")
    op.drop_table("room_statuses")
