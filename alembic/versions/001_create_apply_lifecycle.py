"""Create users, posts, resumes, applies, analyses and reviews tables

Revision ID: 001_create_apply_lifecycle
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_apply_lifecycle'
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        'created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


def upgrade() -> None:
    """Create the apply lifecycle schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('nickname', sa.String(length=100), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('introduction', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id'),
    )

    op.create_table(
        'posts',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('author_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('requirement', sa.Text(), nullable=True),
        sa.Column('head_count', sa.Integer(), nullable=False),
        sa.Column('deadline', sa.Date(), nullable=True),
        sa.Column('is_done', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('head_count >= 1', name='ck_post_head_count_positive'),
    )
    op.create_index('idx_post_author', 'posts', ['author_id'])

    op.create_table(
        'resumes',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('personality', sa.String(length=255), nullable=True),
        sa.Column('portfolio', sa.String(length=500), nullable=True),
        sa.Column('is_main', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_resume_user', 'resumes', ['user_id'])
    op.create_index(
        'uq_resume_user_main', 'resumes', ['user_id'],
        unique=True, postgresql_where=sa.text('is_main'),
    )

    op.create_table(
        'skills',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'resume_skills',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('resume_id', sa.BigInteger(), nullable=False),
        sa.Column('skill_id', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['resume_id'], ['resumes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('resume_id', 'skill_id', name='uq_resume_skill'),
    )
    op.create_index('idx_resume_skill_resume', 'resume_skills', ['resume_id'])

    op.create_table(
        'applies',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('post_id', sa.BigInteger(), nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('resume_id', sa.BigInteger(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('is_selected', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resume_id'], ['resumes.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'post_id', name='uq_apply_user_post'),
    )
    op.create_index('idx_apply_post', 'applies', ['post_id'])
    op.create_index('idx_apply_user_created', 'applies', ['user_id', 'created_at'])
    op.create_index('idx_apply_post_selected', 'applies', ['post_id', 'is_selected'])

    op.create_table(
        'analyses',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('apply_id', sa.BigInteger(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('result', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['apply_id'], ['applies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_analysis_score_range'),
    )
    op.create_index('idx_analysis_apply_created', 'analyses', ['apply_id', 'created_at'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('reviewer_id', sa.BigInteger(), nullable=False),
        sa.Column('reviewee_id', sa.BigInteger(), nullable=False),
        sa.Column('content', sa.String(length=1000), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('review_type', sa.String(length=20), nullable=False),
        sa.Column('apply_id', sa.BigInteger(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['reviewer_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewee_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['apply_id'], ['applies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'reviewer_id', 'reviewee_id', 'apply_id', name='uq_review_peer_triple'
        ),
        sa.CheckConstraint('reviewer_id <> reviewee_id', name='ck_review_not_self'),
        sa.CheckConstraint(
            'rating IS NULL OR (rating >= 1 AND rating <= 5)', name='ck_review_rating_range'
        ),
    )
    op.create_index('idx_review_reviewee_type', 'reviews', ['reviewee_id', 'review_type'])
    op.create_index('idx_review_reviewer', 'reviews', ['reviewer_id'])
    op.create_index('idx_review_apply', 'reviews', ['apply_id'])


def downgrade() -> None:
    """Drop the apply lifecycle schema."""
    op.drop_table('reviews')
    op.drop_table('analyses')
    op.drop_table('applies')
    op.drop_table('resume_skills')
    op.drop_table('skills')
    op.drop_table('resumes')
    op.drop_table('posts')
    op.drop_table('profiles')
    op.drop_table('users')
