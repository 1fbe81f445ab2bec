"""add_workspace_image_file_id

Adds workspaces.image_file_id: the stored file behind an uploaded icon.
Only that file is deleted when the icon is replaced or the workspace goes
away; image URLs supplied as plain strings are never treated as ours.

Revision ID: 8b4e0d6f1a27
Revises: 5f1c2a7d9e30
Create Date: 2026-10-20 10:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8b4e0d6f1a27"
down_revision: Union[str, Sequence[str], None] = "5f1c2a7d9e30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("workspaces") as batch_op:
        batch_op.add_column(sa.Column("image_file_id", sa.String(length=64), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("workspaces") as batch_op:
        batch_op.drop_column("image_file_id")
