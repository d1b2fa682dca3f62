"""
API Services Layer.

Database operations behind the API endpoints. Every function takes the
session and the acting user explicitly.
"""

from api.services.applies import (
    submit_apply,
    cancel_apply,
    toggle_selection,
    get_apply_detail,
    list_applies_for_post,
    list_selected_members,
    list_my_applies,
    count_selected,
)

from api.services.analyses import (
    AnalysisDispatcher,
    analyze_apply,
    get_latest_analysis,
)

from api.services.reviews import (
    create_profile_review,
    create_peer_review,
    delete_review,
    list_profile_reviews,
    list_peer_reviews,
    list_reviews_for_user,
    get_project_dashboard,
)

from api.services.resumes import (
    set_main_resume,
    unset_main_resume,
)

__all__ = [
    # Applies
    "submit_apply",
    "cancel_apply",
    "toggle_selection",
    "get_apply_detail",
    "list_applies_for_post",
    "list_selected_members",
    "list_my_applies",
    "count_selected",
    # Analyses
    "AnalysisDispatcher",
    "analyze_apply",
    "get_latest_analysis",
    # Reviews
    "create_profile_review",
    "create_peer_review",
    "delete_review",
    "list_profile_reviews",
    "list_peer_reviews",
    "list_reviews_for_user",
    "get_project_dashboard",
    # Resumes
    "set_main_resume",
    "unset_main_resume",
]
