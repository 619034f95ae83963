"""create books table

Revision ID: 0001_create_books
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_create_books'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if inspector.has_table('books'):
        return

    op.create_table(
        'books',
        sa.Column('id', sa.Integer, primary_key=True, nullable=False),
        sa.Column('title', sa.String(length=1024), nullable=False),
        sa.Column('authors', sa.JSON, nullable=False),
        sa.Column('synopsis', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('category', sa.JSON, nullable=False),
        sa.Column('year', sa.Integer, nullable=False),
        sa.Column('language', sa.String(length=64), nullable=False),
        sa.Column('format', sa.String(length=64), nullable=False),
        sa.Column('number_pages', sa.Integer, nullable=False),
        sa.Column('source_link', sa.String(length=2048), nullable=True),
        sa.Column('path_url', sa.String(length=1024), nullable=False),
        sa.Column('image', sa.JSON, nullable=False),
        sa.Column('views', sa.Integer, nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_books_title', 'books', ['title'])
    op.create_index('ix_books_path_url', 'books', ['path_url'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_books_path_url', table_name='books')
    op.drop_index('ix_books_title', table_name='books')
    op.drop_table('books')
