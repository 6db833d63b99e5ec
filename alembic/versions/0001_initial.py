"""Initial schema: users, meetings and their collaboration tables

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
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255)),
        sa.Column('password_hash', sa.String(255), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'meetings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('audio_url', sa.Text()),
        sa.Column('audio_path', sa.String(512)),
        sa.Column('transcript', sa.Text()),
        sa.Column('transcript_id', sa.String(128)),
        sa.Column('utterances', sa.JSON()),
        sa.Column('summary', sa.JSON()),
        sa.Column('action_items', sa.JSON()),
        sa.Column('participants', sa.JSON(), nullable=False),
        sa.Column('duration', sa.Integer()),
        sa.Column('language', sa.String(10)),
        sa.Column('translations', sa.JSON()),
        sa.Column('recorded_at', sa.DateTime()),
        *_timestamps(),
    )
    op.create_index('ix_meetings_user_id', 'meetings', ['user_id'])
    op.create_index('ix_meetings_transcript_id', 'meetings', ['transcript_id'])

    op.create_table(
        'meeting_comments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', sa.String(36), sa.ForeignKey('meeting_comments.id', ondelete='CASCADE')),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('selection_start', sa.Integer(), nullable=False),
        sa.Column('selection_end', sa.Integer(), nullable=False),
        sa.Column('selection_text', sa.Text(), nullable=False),
        sa.Column('context_before', sa.Text()),
        sa.Column('context_after', sa.Text()),
        sa.Column('paragraph_id', sa.String(64)),
        sa.Column('speaker_name', sa.String(255)),
        sa.Column('user_name', sa.String(255)),
        sa.Column('user_color', sa.String(16)),
        *_timestamps(),
    )
    op.create_index('ix_meeting_comments_user_id', 'meeting_comments', ['user_id'])
    op.create_index('ix_meeting_comments_meeting_id', 'meeting_comments', ['meeting_id'])

    op.create_table(
        'shared_meetings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('share_token', sa.String(16), nullable=False),
        sa.Column('password', sa.String(255)),
        sa.Column('expires_at', sa.DateTime()),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_accessed_at', sa.DateTime()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_shared_meetings_meeting_id', 'shared_meetings', ['meeting_id'])
    op.create_index('ix_shared_meetings_share_token', 'shared_meetings', ['share_token'], unique=True)

    op.create_table(
        'meeting_notes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('share_token', sa.String(16), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('last_edited_by', sa.JSON()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('meeting_id', 'share_token', name='uq_meeting_notes_meeting_token'),
    )

    op.create_table(
        'meeting_annotations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('share_token', sa.String(16), nullable=False),
        sa.Column('parent_id', sa.String(36), sa.ForeignKey('meeting_annotations.id', ondelete='CASCADE')),
        sa.Column('user_info', sa.JSON(), nullable=False),
        sa.Column('session_id', sa.String(128), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('position', sa.JSON()),
        *_timestamps(),
    )
    op.create_index('ix_meeting_annotations_meeting_id', 'meeting_annotations', ['meeting_id'])
    op.create_index('ix_meeting_annotations_share_token', 'meeting_annotations', ['share_token'])
    op.create_index('ix_meeting_annotations_session_id', 'meeting_annotations', ['session_id'])

    op.create_table(
        'meeting_insights',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        sa.Column('speaker_metrics', sa.JSON()),
        sa.Column('sentiment', sa.JSON()),
        sa.Column('dynamics', sa.JSON()),
        sa.Column('key_moments', sa.JSON()),
        sa.Column('engagement_score', sa.Integer()),
        sa.Column('generated_at', sa.DateTime()),
        *_timestamps(),
    )

    op.create_table(
        'meeting_templates',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('title_template', sa.String(255), nullable=False),
        sa.Column('description_template', sa.String(500)),
        sa.Column('participants', sa.JSON(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_meeting_templates_user_id', 'meeting_templates', ['user_id'])


def downgrade() -> None:
    for table in ('meeting_templates', 'meeting_insights', 'meeting_annotations', 'meeting_notes',
                  'shared_meetings', 'meeting_comments', 'meetings', 'users'):
        op.drop_table(table)
