"""families, members and invitations

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


role_enum = sa.Enum("admin", "viewer", name="roleenum")
status_enum = sa.Enum("pending", "accepted", "expired", "revoked", name="invitationstatusenum")


def upgrade() -> None:
    op.create_table(
        "families",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "family_members",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("family_id", sa.String(length=36), sa.ForeignKey("families.id"), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("membership_key", sa.String(length=300), nullable=False, unique=True),
        sa.Column("invitation_id", sa.String(length=36), nullable=False, unique=True),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_family_members_family_email", "family_members", ["family_id", "email"])

    op.create_table(
        "family_invitations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("family_id", sa.String(length=36), sa.ForeignKey("families.id"), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("status", status_enum, nullable=False),
        sa.Column("pending_key", sa.String(length=300), nullable=True, unique=True),
        sa.Column("inviter_id", sa.String(length=255), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_family_invitations_family_status", "family_invitations", ["family_id", "status"])


def downgrade() -> None:
    op.drop_index("ix_family_invitations_family_status", table_name="family_invitations")
    op.drop_table("family_invitations")
    op.drop_index("ix_family_members_family_email", table_name="family_members")
    op.drop_table("family_members")
    op.drop_table("families")
    status_enum.drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
