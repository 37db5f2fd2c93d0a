"""
create_documents

Revision ID: 20261018_create_documents
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261018_create_documents'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'documents',
        sa.Column('path', sa.String(length=512), primary_key=True),
        sa.Column('collection', sa.String(length=512), nullable=False),
        sa.Column('doc_id', sa.String(length=128), nullable=False),
        sa.Column('data', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_documents_collection', 'documents', ['collection'])


def downgrade() -> None:
    op.drop_index('ix_documents_collection', table_name='documents')
    op.drop_table('documents')
