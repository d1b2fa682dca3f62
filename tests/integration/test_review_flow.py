"""
Review and resume endpoints over HTTP.
"""

import pytest
import pytest_asyncio

from tests.helpers import actor_headers

REVIEWS = "/api/v1/reviews"
RESUMES = "/api/v1/resumes"


@pytest_asyncio.fixture
async def selected_apply(factory, team):
    return await factory.apply(team["applicant"], team["post"], is_selected=True)


@pytest.mark.asyncio
class TestPeerReviewFlow:

    async def test_author_reviews_selected_applicant_once(self, client, team, selected_apply):
        payload = {"reviewee_id": team["applicant"].id, "content": "great teammate", "rating": 5}
        headers = actor_headers(team["author"])

        response = await client.post(f"{REVIEWS}/peer/{selected_apply.id}", json=payload, headers=headers)
        assert response.status_code == 201
        body = response.json()
        assert body["review_type"] == "PEER_REVIEW"
        assert body["content"] == "great teammate"
        assert body["apply_id"] == selected_apply.id

        repeat = await client.post(f"{REVIEWS}/peer/{selected_apply.id}", json=payload, headers=headers)
        assert repeat.status_code == 409

    async def test_review_before_selection_forbidden(self, client, factory, team):
        apply = await factory.apply(team["applicant"], team["post"])

        response = await client.post(
            f"{REVIEWS}/peer/{apply.id}",
            json={"reviewee_id": team["applicant"].id, "content": "hi"},
            headers=actor_headers(team["author"]),
        )

        assert response.status_code == 403

    async def test_blank_content_is_bad_request(self, client, team, selected_apply):
        response = await client.post(
            f"{REVIEWS}/peer/{selected_apply.id}",
            json={"reviewee_id": team["applicant"].id, "content": "   "},
            headers=actor_headers(team["author"]),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_dashboard(self, client, team, selected_apply):
        response = await client.get(
            f"{REVIEWS}/projects/{selected_apply.id}/dashboard",
            headers=actor_headers(team["applicant"]),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["post"]["id"] == team["post"].id
        assert [m["user_id"] for m in body["reviewable_members"]] == [team["author"].id]

    async def test_peer_reviews_listed_for_participants(self, client, team, selected_apply):
        await client.post(
            f"{REVIEWS}/peer/{selected_apply.id}",
            json={"reviewee_id": team["author"].id, "content": "clear goals"},
            headers=actor_headers(team["applicant"]),
        )

        response = await client.get(
            f"{REVIEWS}/peer/{selected_apply.id}", headers=actor_headers(team["author"])
        )
        assert response.status_code == 200
        assert [r["content"] for r in response.json()] == ["clear goals"]

        response = await client.get(
            f"{REVIEWS}/peer/{selected_apply.id}", headers=actor_headers(team["outsider"])
        )
        assert response.status_code == 403


@pytest.mark.asyncio
class TestProfileReviewFlow:

    async def test_write_list_and_delete(self, client, team):
        created = await client.post(
            f"{REVIEWS}/profile/{team['applicant'].id}",
            json={"content": "Always on time"},
            headers=actor_headers(team["outsider"]),
        )
        assert created.status_code == 201
        review_id = created.json()["id"]

        listed = await client.get(
            f"{REVIEWS}/profile/{team['applicant'].id}", headers=actor_headers(team["author"])
        )
        assert [r["id"] for r in listed.json()] == [review_id]

        deleted = await client.delete(
            f"{REVIEWS}/{review_id}", headers=actor_headers(team["applicant"])
        )
        assert deleted.status_code == 204

        listed = await client.get(
            f"{REVIEWS}/profile/{team['applicant'].id}", headers=actor_headers(team["author"])
        )
        assert listed.json() == []

    async def test_self_review_is_bad_request(self, client, team):
        response = await client.post(
            f"{REVIEWS}/profile/{team['applicant'].id}",
            json={"content": "I am great"},
            headers=actor_headers(team["applicant"]),
        )

        assert response.status_code == 400

    async def test_user_review_page(self, client, factory, team):
        await factory.profile_review(team["outsider"], team["applicant"], "received")

        own = await client.get(
            f"{REVIEWS}/user/{team['applicant'].id}", headers=actor_headers(team["applicant"])
        )
        other = await client.get(
            f"{REVIEWS}/user/{team['applicant'].id}", headers=actor_headers(team["author"])
        )

        assert own.json()["written"] == []
        assert other.json()["written"] is None
        assert [r["content"] for r in other.json()["received"]] == ["received"]


@pytest.mark.asyncio
class TestMainResumeFlow:

    async def test_set_and_unset(self, client, factory, team):
        second = await factory.resume(team["applicant"], title="Frontend")
        headers = actor_headers(team["applicant"])

        response = await client.put(f"{RESUMES}/{team['resume'].id}/main", headers=headers)
        assert response.status_code == 200
        assert response.json()["is_main"] is True

        response = await client.put(f"{RESUMES}/{second.id}/main", headers=headers)
        assert response.json()["title"] == "Frontend"

        response = await client.delete(f"{RESUMES}/main", headers=headers)
        assert response.status_code == 204

    async def test_foreign_resume_forbidden(self, client, team):
        response = await client.put(
            f"{RESUMES}/{team['resume'].id}/main", headers=actor_headers(team["author"])
        )

        assert response.status_code == 403
