"""initial schema: companies, tokens, users, asset items, recorded meetings, webhook events

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False, unique=True),
        sa.Column('gsuite_domain', sa.String(255)),
        sa.Column('printer_url', sa.String(512)),
        sa.Column('airtable_base_id_assets', sa.String(64)),
        sa.Column('airtable_base_id_misc', sa.String(64)),
        sa.Column('slack_team_id', sa.String(32), index=True),
        *_timestamps(),
    )
    op.create_table(
        'api_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('cio_company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('product', sa.String(32), nullable=False),
        sa.Column('access_token', sa.Text()),
        sa.Column('refresh_token', sa.Text()),
        sa.Column('expires_at', sa.DateTime()),
        *_timestamps(),
        sa.UniqueConstraint('cio_company_id', 'product', name='uq_api_tokens_company_product'),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('cio_company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(120)),
        sa.Column('last_name', sa.String(120)),
        sa.Column('zoom_id', sa.String(64), index=True),
        *_timestamps(),
    )
    op.create_table(
        'asset_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('cio_company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('picture', sa.String(1024)),
        sa.Column('type', sa.String(120)),
        sa.Column('qualities', sa.JSON()),
        sa.Column('status', sa.String(64)),
        sa.Column('manufacturer', sa.String(255)),
        sa.Column('model_number', sa.String(255)),
        sa.Column('serial_number', sa.String(255)),
        sa.Column('purchase_price', sa.Float()),
        sa.Column('current_employee_borrowing', sa.String(255)),
        sa.Column('conference_room_using', sa.JSON()),
        sa.Column('notes', sa.Text()),
        sa.Column('barcode', sa.String(32)),
        sa.Column('barcode_png', sa.String(1024)),
        sa.Column('barcode_svg', sa.String(1024)),
        sa.Column('barcode_pdf_label', sa.String(1024)),
        sa.Column('airtable_record_id', sa.String(64), index=True),
        *_timestamps(),
        sa.UniqueConstraint('cio_company_id', 'name', name='uq_asset_items_company_name'),
    )
    op.create_table(
        'recorded_meetings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('cio_company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('name', sa.String(512)),
        sa.Column('description', sa.Text()),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('video', sa.String(1024)),
        sa.Column('chat_log_link', sa.String(1024)),
        sa.Column('chat_log', sa.Text()),
        sa.Column('is_recurring', sa.Boolean()),
        sa.Column('attendees', sa.JSON()),
        sa.Column('transcript', sa.Text()),
        sa.Column('transcript_id', sa.String(255)),
        sa.Column('google_event_id', sa.String(255), nullable=False, unique=True),
        sa.Column('event_link', sa.String(1024)),
        sa.Column('location', sa.String(512)),
        sa.Column('airtable_record_id', sa.String(64), index=True),
        *_timestamps(),
    )
    op.create_table(
        'webhook_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('provider', sa.String(32), nullable=False, index=True),
        sa.Column('event_type', sa.String(128)),
        sa.Column('delivery_id', sa.String(255)),
        sa.Column('payload', sa.JSON()),
        sa.Column('received_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    for t in ('webhook_events', 'recorded_meetings', 'asset_items', 'users', 'api_tokens', 'companies'):
        op.drop_table(t)
