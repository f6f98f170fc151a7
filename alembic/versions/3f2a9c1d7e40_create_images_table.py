"""create_images_table

Revision ID: 3f2a9c1d7e40
Revises:
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3f2a9c1d7e40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'images',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('path', sa.String(length=1024), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('size', sa.BigInteger(), nullable=False),
        sa.Column('mimetype', sa.String(length=50), nullable=False),
        sa.Column('extension', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    # listing sorts on created_at
    op.create_index('ix_images_created_at', 'images', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_images_created_at', table_name='images')
    op.drop_table('images')
