"""
Tests for the ownership and participation guard.

Entities are built in memory; the guard never touches the database.
"""

import pytest

from core.authorization import (
    can_cancel_apply,
    can_create_peer_review,
    can_delete_review,
    can_manage_post,
    can_toggle_selection,
    can_use_resume,
    can_view_applicant_details,
    can_view_profile,
    is_apply_participant,
    require_apply_participant,
    require_cancel_apply,
    require_create_peer_review,
    require_delete_review,
    require_toggle_selection,
    require_use_resume,
    require_view_profile,
)
from core.errors import AuthorizationError, ConflictError
from database.models import Apply, Post, Profile, Resume, Review, ReviewType

AUTHOR, APPLICANT, OUTSIDER = 1, 2, 3


@pytest.fixture
def post():
    return Post(id=10, author_id=AUTHOR, title="Study app", head_count=2, is_done=False)


@pytest.fixture
def apply(post):
    return Apply(id=20, post_id=post.id, user_id=APPLICANT, is_selected=False)


@pytest.fixture
def selected_apply(post):
    return Apply(id=21, post_id=post.id, user_id=APPLICANT, is_selected=True)


class TestResumeAndPost:

    def test_only_owner_uses_resume(self):
        resume = Resume(id=5, user_id=APPLICANT, title="r", content="c")
        assert can_use_resume(APPLICANT, resume)
        assert not can_use_resume(OUTSIDER, resume)
        with pytest.raises(AuthorizationError):
            require_use_resume(OUTSIDER, resume)

    def test_only_author_manages_post(self, post):
        assert can_manage_post(AUTHOR, post)
        assert not can_manage_post(APPLICANT, post)

    def test_only_author_views_applicant_details(self, post):
        assert can_view_applicant_details(AUTHOR, post)
        assert not can_view_applicant_details(APPLICANT, post)


class TestCancel:

    def test_owner_can_cancel_unselected(self, apply):
        assert can_cancel_apply(APPLICANT, apply)
        require_cancel_apply(APPLICANT, apply)

    def test_non_owner_is_forbidden(self, apply):
        assert not can_cancel_apply(AUTHOR, apply)
        with pytest.raises(AuthorizationError):
            require_cancel_apply(AUTHOR, apply)

    def test_selected_apply_is_conflict(self, selected_apply):
        assert not can_cancel_apply(APPLICANT, selected_apply)
        with pytest.raises(ConflictError):
            require_cancel_apply(APPLICANT, selected_apply)

    def test_non_owner_of_selected_apply_is_forbidden(self, selected_apply):
        """Ownership is checked before selection state."""
        with pytest.raises(AuthorizationError):
            require_cancel_apply(OUTSIDER, selected_apply)


class TestSelection:

    def test_only_author_toggles(self, apply, post):
        assert can_toggle_selection(AUTHOR, apply, post)
        assert not can_toggle_selection(APPLICANT, apply, post)
        with pytest.raises(AuthorizationError):
            require_toggle_selection(OUTSIDER, apply, post)

    def test_post_must_own_the_apply(self, apply):
        other_post = Post(id=99, author_id=OUTSIDER, title="Other", head_count=1)
        assert not can_toggle_selection(OUTSIDER, apply, other_post)


class TestPeerReview:

    def test_participants(self, apply, post):
        assert is_apply_participant(AUTHOR, apply, post)
        assert is_apply_participant(APPLICANT, apply, post)
        assert not is_apply_participant(OUTSIDER, apply, post)
        with pytest.raises(AuthorizationError):
            require_apply_participant(OUTSIDER, apply, post)

    @pytest.mark.parametrize("reviewer,reviewee", [(AUTHOR, APPLICANT), (APPLICANT, AUTHOR)])
    def test_participants_review_each_other_once_selected(self, selected_apply, post, reviewer, reviewee):
        assert can_create_peer_review(reviewer, selected_apply, post, reviewee)
        require_create_peer_review(reviewer, selected_apply, post, reviewee)

    def test_not_selected_is_forbidden(self, apply, post):
        assert not can_create_peer_review(AUTHOR, apply, post, APPLICANT)
        with pytest.raises(AuthorizationError, match="selected"):
            require_create_peer_review(AUTHOR, apply, post, APPLICANT)

    @pytest.mark.parametrize("reviewer,reviewee", [
        (OUTSIDER, APPLICANT),
        (AUTHOR, OUTSIDER),
        (AUTHOR, AUTHOR),
    ])
    def test_outsiders_and_self_are_rejected(self, selected_apply, post, reviewer, reviewee):
        assert not can_create_peer_review(reviewer, selected_apply, post, reviewee)
        with pytest.raises(AuthorizationError):
            require_create_peer_review(reviewer, selected_apply, post, reviewee)


class TestReviewDeletion:

    def test_reviewer_deletes_any_own_review(self):
        peer = Review(
            id=1, reviewer_id=AUTHOR, reviewee_id=APPLICANT,
            content="x", review_type=ReviewType.PEER_REVIEW, apply_id=20,
        )
        assert can_delete_review(AUTHOR, peer)

    def test_reviewee_deletes_profile_review_only(self):
        profile_review = Review(
            id=2, reviewer_id=OUTSIDER, reviewee_id=APPLICANT,
            content="x", review_type=ReviewType.PROFILE_REVIEW,
        )
        peer_review = Review(
            id=3, reviewer_id=AUTHOR, reviewee_id=APPLICANT,
            content="x", review_type=ReviewType.PEER_REVIEW, apply_id=20,
        )
        assert can_delete_review(APPLICANT, profile_review)
        assert not can_delete_review(APPLICANT, peer_review)
        with pytest.raises(AuthorizationError):
            require_delete_review(APPLICANT, peer_review)

    def test_third_party_cannot_delete(self):
        review = Review(
            id=4, reviewer_id=AUTHOR, reviewee_id=APPLICANT,
            content="x", review_type=ReviewType.PROFILE_REVIEW,
        )
        assert not can_delete_review(OUTSIDER, review)


class TestProfileVisibility:

    def test_public_profile_visible_to_all(self):
        profile = Profile(user_id=APPLICANT, is_public=True)
        assert can_view_profile(OUTSIDER, profile, APPLICANT)

    def test_private_profile_visible_to_owner_only(self):
        profile = Profile(user_id=APPLICANT, is_public=False)
        assert can_view_profile(APPLICANT, profile, APPLICANT)
        assert not can_view_profile(OUTSIDER, profile, APPLICANT)
        with pytest.raises(AuthorizationError):
            require_view_profile(OUTSIDER, profile, APPLICANT)

    def test_missing_profile_counts_as_private(self):
        assert not can_view_profile(OUTSIDER, None, APPLICANT)
        assert can_view_profile(APPLICANT, None, APPLICANT)
