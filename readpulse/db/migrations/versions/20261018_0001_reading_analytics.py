"""reading_analytics

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users with the lifetime reading aggregate
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('roles', postgresql.JSONB(), nullable=True),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('total_reading_duration', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_reading_days', sa.Integer(), server_default='0', nullable=False),
        sa.Column('current_streak_days', sa.Integer(), server_default='0', nullable=False),
        sa.Column('max_streak_days', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_reading_date', sa.Date(), nullable=True),
        sa.Column('books_read_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('books_finished_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # Content catalog
    op.create_table(
        'books',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('author', sa.String(255), nullable=True),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('cover_url', sa.Text(), nullable=True),
        sa.Column('publication_date', sa.Date(), nullable=True),
        sa.Column('external_rating', sa.Float(), nullable=True),
        sa.Column('external_ratings_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "content_type IN ('ebook', 'magazine', 'audiobook')",
            name='check_book_content_type',
        ),
    )
    op.create_index('ix_books_title', 'books', ['title'])
    op.create_index('idx_books_content_type', 'books', ['content_type'])
    op.create_index('idx_books_publication_date', 'books', ['publication_date'])

    op.create_table(
        'book_stats',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False),
        sa.Column('content_id', sa.UUID(), nullable=False),
        sa.Column('total_readers', sa.Integer(), server_default='0', nullable=False),
        sa.Column('finished_readers', sa.Integer(), server_default='0', nullable=False),
        sa.Column('average_rating', sa.Float(), nullable=True),
        sa.Column('rating_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('content_type', 'content_id', name='uq_book_stats_content'),
    )
    op.create_index('idx_book_stats_readers', 'book_stats', ['total_readers'])

    op.create_table(
        'shelf_entries',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False),
        sa.Column('content_id', sa.UUID(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'content_type', 'content_id', name='uq_shelf_user_content'),
    )
    op.create_index('idx_shelf_entries_added_at', 'shelf_entries', ['added_at'])

    # Reading sessions
    op.create_table(
        'reading_sessions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('content_id', sa.UUID(), nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), server_default='0', nullable=False),
        sa.Column('start_position', sa.Text(), nullable=True),
        sa.Column('end_position', sa.Text(), nullable=True),
        sa.Column('start_chapter', sa.Integer(), nullable=True),
        sa.Column('end_chapter', sa.Integer(), nullable=True),
        sa.Column('pages_read', sa.Integer(), server_default='0', nullable=False),
        sa.Column('device_type', sa.String(20), nullable=True),
        sa.Column('device_id', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('is_paused', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('paused_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_paused_seconds', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_aggregated', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('duration_seconds >= 0', name='check_session_duration_positive'),
        sa.CheckConstraint('total_paused_seconds >= 0', name='check_session_paused_positive'),
    )
    op.create_index('idx_reading_sessions_user_time', 'reading_sessions', ['user_id', 'start_time'])
    op.create_index('idx_reading_sessions_content', 'reading_sessions', ['content_type', 'content_id'])
    op.create_index('idx_reading_sessions_start_time', 'reading_sessions', ['start_time'])
    op.create_index(
        'uq_reading_sessions_active_user',
        'reading_sessions',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
    )

    op.create_table(
        'reading_history',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('content_id', sa.UUID(), nullable=False),
        sa.Column('content_type', sa.String(20), nullable=False),
        sa.Column('last_position', sa.Text(), nullable=True),
        sa.Column('last_chapter', sa.Integer(), nullable=True),
        sa.Column('total_duration_seconds', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_read_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'content_type', 'content_id', name='uq_reading_history_user_content'),
    )
    op.create_index('idx_reading_history_user_read_at', 'reading_history', ['user_id', 'last_read_at'])

    # Daily aggregates
    op.create_table(
        'daily_reading_stats',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('total_duration_seconds', sa.Integer(), server_default='0', nullable=False),
        sa.Column('books_read', sa.Integer(), server_default='0', nullable=False),
        sa.Column('books_finished', sa.Integer(), server_default='0', nullable=False),
        sa.Column('pages_read', sa.Integer(), server_default='0', nullable=False),
        sa.Column('notes_created', sa.Integer(), server_default='0', nullable=False),
        sa.Column('highlights_created', sa.Integer(), server_default='0', nullable=False),
        sa.Column('category_durations', postgresql.JSONB(), nullable=True),
        sa.Column('book_durations', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_stats_user_date'),
    )

    op.create_table(
        'reading_milestones',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('milestone_type', sa.String(30), nullable=False),
        sa.Column('milestone_value', sa.Integer(), nullable=False),
        sa.Column('content_id', sa.UUID(), nullable=True),
        sa.Column('content_type', sa.String(20), nullable=True),
        sa.Column('content_title', sa.String(500), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('achieved_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'milestone_type', 'milestone_value', name='uq_milestone_user_type_value'),
    )
    op.create_index('idx_reading_milestones_user_achieved', 'reading_milestones', ['user_id', 'achieved_at'])

    # Badges
    op.create_table(
        'badges',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('level', sa.Integer(), server_default='1', nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('requirement', sa.Text(), nullable=True),
        sa.Column('condition_type', sa.String(30), nullable=False),
        sa.Column('condition_value', sa.Integer(), nullable=False),
        sa.Column('icon_url', sa.Text(), nullable=True),
        sa.Column('background_color', sa.String(20), nullable=True),
        sa.Column('earned_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_badges_category_level', 'badges', ['category', 'level'])

    op.create_table(
        'user_badges',
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('badge_id', sa.UUID(), nullable=False),
        sa.Column('earned_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['badge_id'], ['badges.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'badge_id'),
    )

    # Weekly leaderboard
    op.create_table(
        'weekly_leaderboard',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('week_end', sa.Date(), nullable=False),
        sa.Column('total_duration_seconds', sa.Integer(), server_default='0', nullable=False),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('rank_change', sa.Integer(), server_default='0', nullable=False),
        sa.Column('reading_days', sa.Integer(), server_default='0', nullable=False),
        sa.Column('books_read', sa.Integer(), server_default='0', nullable=False),
        sa.Column('likes_received', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'week_start', name='uq_weekly_lb_user_week'),
    )
    op.create_index('idx_weekly_lb_week_rank', 'weekly_leaderboard', ['week_start', 'rank'])

    op.create_table(
        'leaderboard_likes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('target_user_id', sa.UUID(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['target_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'target_user_id', 'week_start', name='uq_leaderboard_like'),
    )


def downgrade() -> None:
    op.drop_table('leaderboard_likes')
    op.drop_index('idx_weekly_lb_week_rank', table_name='weekly_leaderboard')
    op.drop_table('weekly_leaderboard')
    op.drop_table('user_badges')
    op.drop_index('idx_badges_category_level', table_name='badges')
    op.drop_table('badges')
    op.drop_index('idx_reading_milestones_user_achieved', table_name='reading_milestones')
    op.drop_table('reading_milestones')
    op.drop_table('daily_reading_stats')
    op.drop_index('idx_reading_history_user_read_at', table_name='reading_history')
    op.drop_table('reading_history')
    op.drop_index('uq_reading_sessions_active_user', table_name='reading_sessions')
    op.drop_index('idx_reading_sessions_start_time', table_name='reading_sessions')
    op.drop_index('idx_reading_sessions_content', table_name='reading_sessions')
    op.drop_index('idx_reading_sessions_user_time', table_name='reading_sessions')
    op.drop_table('reading_sessions')
    op.drop_index('idx_shelf_entries_added_at', table_name='shelf_entries')
    op.drop_table('shelf_entries')
    op.drop_index('idx_book_stats_readers', table_name='book_stats')
    op.drop_table('book_stats')
    op.drop_index('idx_books_publication_date', table_name='books')
    op.drop_index('idx_books_content_type', table_name='books')
    op.drop_index('ix_books_title', table_name='books')
    op.drop_table('books')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
