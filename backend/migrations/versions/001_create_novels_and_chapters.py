"""Create novels and chapters tables.

Revision ID: 001_novels_chapters
Revises: None
Create Date: 2026-10-19

Chapters are unique per (novel_id, number) so EPUB ingestion can upsert
them, and carry one content column per language.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_novels_chapters"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create novels and chapters."""
    op.create_table(
        "novels",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("author", sa.String(255)),
        sa.Column("description", sa.Text()),
        sa.Column("cover_url", sa.String(1000)),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_table(
        "chapters",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "novel_id",
            sa.String(36),
            sa.ForeignKey("novels.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(500)),
        sa.Column("content_en", sa.Text()),
        sa.Column("content_id", sa.Text()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint("novel_id", "number", name="uq_chapters_novel_number"),
    )


def downgrade() -> None:
    """Drop chapters and novels."""
    op.drop_table("chapters")
    op.drop_table("novels")
