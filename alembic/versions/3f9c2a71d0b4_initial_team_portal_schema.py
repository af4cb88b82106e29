"""initial_team_portal_schema

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2026-10-19 09:12:44.318205
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3f9c2a71d0b4'
down_revision = None
branch_labels = None
depends_on = None

user_role_enum = postgresql.ENUM(
    'admin', 'coach', 'athlete', name='user_role_enum', create_type=False
)
gender_enum = postgresql.ENUM('male', 'female', name='gender_enum', create_type=False)
organization_sport_status_enum = postgresql.ENUM(
    'active', 'inactive', name='organization_sport_status_enum', create_type=False
)
subscription_status_enum = postgresql.ENUM(
    'active', 'canceled', 'past_due', 'trialing', 'incomplete',
    name='subscription_status_enum',
    create_type=False,
)
billing_status_enum = postgresql.ENUM(
    'succeeded', 'pending', 'failed', name='billing_status_enum', create_type=False
)

ENUMS = (
    user_role_enum,
    gender_enum,
    organization_sport_status_enum,
    subscription_status_enum,
    billing_status_enum,
)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'organizations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column('phone', postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'sports',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('role', user_role_enum, nullable=True),
        sa.Column('organization_id', sa.Uuid(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column(
            'notification_preferences',
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_organization_id', 'profiles', ['organization_id'])

    op.create_table(
        'access_codes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=True),
        sa.Column('role', user_role_enum, nullable=False),
        sa.Column('sport_id', sa.Uuid(), nullable=True),
        sa.Column('gender', gender_enum, nullable=True),
        sa.Column('created_by', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_by', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['sport_id'], ['sports.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_access_codes_code', 'access_codes', ['code'], unique=True)
    op.create_index('ix_access_codes_created_by', 'access_codes', ['created_by'])
    op.create_index(
        'ix_access_codes_organization_id', 'access_codes', ['organization_id']
    )
    op.create_index(
        'ix_access_codes_unused',
        'access_codes',
        ['code'],
        postgresql_where=sa.text('used_at IS NULL'),
    )

    op.create_table(
        'user_sports',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('sport_id', sa.Uuid(), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('gender', gender_enum, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['sport_id'], ['sports.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'user_id', 'sport_id', 'organization_id', name='uq_user_sport_org'
        ),
    )
    op.create_index('ix_user_sports_user_id', 'user_sports', ['user_id'])
    op.create_index('ix_user_sports_sport_id', 'user_sports', ['sport_id'])

    op.create_table(
        'coach_athletes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('coach_id', sa.String(), nullable=False),
        sa.Column('athlete_id', sa.String(), nullable=False),
        sa.Column('sport_id', sa.Uuid(), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['sport_id'], ['sports.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'coach_id',
            'athlete_id',
            'sport_id',
            'organization_id',
            name='uq_coach_athlete_sport_org',
        ),
    )
    op.create_index('ix_coach_athletes_coach_id', 'coach_athletes', ['coach_id'])
    op.create_index('ix_coach_athletes_athlete_id', 'coach_athletes', ['athlete_id'])
    op.create_index(
        'ix_coach_athletes_coach_sport_org',
        'coach_athletes',
        ['coach_id', 'sport_id', 'organization_id'],
    )

    op.create_table(
        'organization_sports',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('sport_id', sa.Uuid(), nullable=False),
        sa.Column('status', organization_sport_status_enum, nullable=False),
        sa.Column('settings', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['sport_id'], ['sports.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'organization_id', 'sport_id', name='uq_organization_sport'
        ),
    )
    op.create_index(
        'ix_organization_sports_organization_id',
        'organization_sports',
        ['organization_id'],
    )

    op.create_table(
        'analytics_events',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=True),
        sa.Column('event_type', sa.String(), nullable=False),
        sa.Column(
            'event_data', postgresql.JSONB(astext_type=sa.Text()), nullable=False
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_analytics_events_organization_id', 'analytics_events', ['organization_id']
    )
    op.create_index(
        'ix_analytics_events_event_type', 'analytics_events', ['event_type']
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('plan', sa.String(), nullable=False),
        sa.Column('status', subscription_status_enum, nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column(
            'current_period_start', sa.DateTime(timezone=True), nullable=False
        ),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'current_period_start < current_period_end',
            name='ck_subscriptions_period_order',
        ),
        sa.CheckConstraint('amount >= 0', name='ck_subscriptions_amount_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])

    op.create_table(
        'billing_history',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('subscription_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('status', billing_status_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('amount >= 0', name='ck_billing_history_amount_positive'),
        sa.ForeignKeyConstraint(['subscription_id'], ['subscriptions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_billing_history_subscription_id', 'billing_history', ['subscription_id']
    )


def downgrade() -> None:
    op.drop_table('billing_history')
    op.drop_table('subscriptions')
    op.drop_table('analytics_events')
    op.drop_table('organization_sports')
    op.drop_table('coach_athletes')
    op.drop_table('user_sports')
    op.drop_table('access_codes')
    op.drop_table('profiles')
    op.drop_table('sports')
    op.drop_table('organizations')

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
