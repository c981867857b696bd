"""Create lead, client, checkout link, payment and activity tables

Revision ID: create_checkout_conversion_tables
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'create_checkout_conversion_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('document', sa.String(length=20), nullable=True),
        sa.Column('segment', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='new'),
        sa.Column('converted_to_client_id', sa.Integer(), nullable=True),
        sa.Column('external_customer_id', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_leads_id'), 'leads', ['id'], unique=False)
    op.create_index(op.f('ix_leads_email'), 'leads', ['email'], unique=False)
    op.create_index(op.f('ix_leads_status'), 'leads', ['status'], unique=False)
    op.create_index(op.f('ix_leads_converted_to_client_id'), 'leads', ['converted_to_client_id'], unique=False)

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('document', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='active'),
        sa.Column('segment', sa.String(length=50), nullable=False, server_default='default'),
        sa.Column('external_customer_id', sa.String(length=100), nullable=True),
        sa.Column('created_from_lead_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_from_lead_id'], ['leads.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_clients_id'), 'clients', ['id'], unique=False)
    op.create_index(op.f('ix_clients_email'), 'clients', ['email'], unique=True)
    op.create_index(op.f('ix_clients_external_customer_id'), 'clients', ['external_customer_id'], unique=False)
    op.create_index(op.f('ix_clients_created_from_lead_id'), 'clients', ['created_from_lead_id'], unique=False)

    # leads <-> clients reference each other; add this side once both exist
    with op.batch_alter_table('leads') as batch_op:
        batch_op.create_foreign_key(
            'fk_leads_converted_to_client_id', 'clients', ['converted_to_client_id'], ['id']
        )

    op.create_table(
        'checkout_links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('external_checkout_id', sa.String(length=255), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('url', sa.String(length=1000), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('value', sa.Numeric(10, 2), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id']),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_checkout_links_id'), 'checkout_links', ['id'], unique=False)
    op.create_index(op.f('ix_checkout_links_external_checkout_id'), 'checkout_links', ['external_checkout_id'], unique=True)
    op.create_index(op.f('ix_checkout_links_lead_id'), 'checkout_links', ['lead_id'], unique=False)
    op.create_index(op.f('ix_checkout_links_client_id'), 'checkout_links', ['client_id'], unique=False)
    op.create_index(op.f('ix_checkout_links_status'), 'checkout_links', ['status'], unique=False)

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('checkout_link_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False, server_default='checkout'),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('value', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('invoice_url', sa.String(length=1000), nullable=True),
        sa.Column('external_payment_id', sa.String(length=100), nullable=False),
        sa.Column('raw_payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.ForeignKeyConstraint(['checkout_link_id'], ['checkout_links.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_payments_id'), 'payments', ['id'], unique=False)
    op.create_index(op.f('ix_payments_client_id'), 'payments', ['client_id'], unique=False)
    op.create_index(op.f('ix_payments_checkout_link_id'), 'payments', ['checkout_link_id'], unique=False)
    op.create_index(op.f('ix_payments_status'), 'payments', ['status'], unique=False)
    op.create_index(op.f('ix_payments_external_payment_id'), 'payments', ['external_payment_id'], unique=True)

    op.create_table(
        'lead_activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_lead_activities_id'), 'lead_activities', ['id'], unique=False)
    op.create_index(op.f('ix_lead_activities_lead_id'), 'lead_activities', ['lead_id'], unique=False)
    op.create_index(op.f('ix_lead_activities_type'), 'lead_activities', ['type'], unique=False)
    op.create_index(op.f('ix_lead_activities_created_at'), 'lead_activities', ['created_at'], unique=False)

    op.create_table(
        'client_activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_client_activities_id'), 'client_activities', ['id'], unique=False)
    op.create_index(op.f('ix_client_activities_client_id'), 'client_activities', ['client_id'], unique=False)
    op.create_index(op.f('ix_client_activities_type'), 'client_activities', ['type'], unique=False)
    op.create_index(op.f('ix_client_activities_created_at'), 'client_activities', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_table('client_activities')
    op.drop_table('lead_activities')
    op.drop_table('payments')
    op.drop_table('checkout_links')
    with op.batch_alter_table('leads') as batch_op:
        batch_op.drop_constraint('fk_leads_converted_to_client_id', type_='foreignkey')
    op.drop_table('clients')
    op.drop_table('leads')
