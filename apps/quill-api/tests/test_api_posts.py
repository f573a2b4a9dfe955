"""Tests for the post endpoints."""

from __future__ import annotations

from bson import ObjectId

BODY_150 = "x" * 150


def _create(client, headers, *, title="Hello World", body=BODY_150, topic="news"):
    return client.post("/api/posts", json={"title": title, "body": body, "topic": topic}, headers=headers)


class TestCreatePost:
    def test_creates_post_and_topic(self, client, users, author_headers, fetch):
        resp = _create(client, author_headers)

        assert resp.status_code == 200
        post = resp.json()
        assert ObjectId.is_valid(post["id"])
        assert post["title"] == "Hello World"
        assert post["author"] == str(users["ada"]["_id"])
        assert post["comments"] == []
        topic = fetch("topics", {"name": "news"})
        assert post["topic"] == str(topic["_id"])

    def test_same_topic_name_reuses_topic(self, client, users, author_headers, registry):
        first = _create(client, author_headers).json()
        second = _create(client, author_headers, title="Second post").json()

        assert first["topic"] == second["topic"]
        assert first["id"] != second["id"]

    def test_appends_post_to_author(self, client, users, author_headers, fetch):
        post = _create(client, author_headers).json()
        ada = fetch("users", {"username": "ada"})
        assert ada["posts"] == [ObjectId(post["id"])]

    def test_unknown_author_still_creates(self, client, author_headers):
        resp = _create(client, author_headers)
        assert resp.status_code == 200

    def test_escapes_markup(self, client, users, author_headers):
        post = _create(client, author_headers, title="  <b>Bold</b> move  ").json()
        assert post["title"] == "&lt;b&gt;Bold&lt;/b&gt; move"

    def test_requires_authentication(self, client):
        resp = _create(client, {})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Authentication required"}
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_is_unauthenticated(self, client):
        resp = _create(client, {"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_validation_errors_are_batched(self, client, users, author_headers, fetch):
        resp = _create(client, author_headers, title="ab", body="  ")

        assert resp.status_code == 400
        errors = resp.json()["errors"]
        assert [(e["location"], e["field"]) for e in errors] == [("body", "title"), ("body", "body"), ("body", "topic")]
        assert errors[0]["message"] == "Title must have correct length"
        assert errors[1]["message"] == "Post body must have correct length"
        assert errors[2]["message"] == "An error has occurred during sanitization"
        # the topic is never created for a rejected post
        assert fetch("topics", {"name": "news"}) is None

    def test_missing_fields(self, client, author_headers):
        resp = client.post("/api/posts", headers=author_headers)
        assert resp.status_code == 400
        assert {e["field"] for e in resp.json()["errors"]} == {"title", "body", "topic"}

    def test_malformed_json_is_400(self, client, author_headers):
        resp = client.post(
            "/api/posts",
            content=b"{not json",
            headers={**author_headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert "errors" in resp.json()


class TestListPosts:
    def test_newest_first_with_expansions(self, client, users, seed, seed_posts):
        topic = seed("topics", {"name": "news"})
        seed_posts(3, topic=topic["_id"])

        resp = client.get("/api/posts")

        assert resp.status_code == 200
        posts = resp.json()
        assert [p["title"] for p in posts] == ["Post 2", "Post 1", "Post 0"]
        assert posts[0]["author"] == {"id": str(users["ada"]["_id"]), "username": "ada"}
        assert posts[0]["topic"] == {"id": str(topic["_id"]), "name": "news"}

    def test_page_past_the_end_returns_first_page(self, client, seed_posts):
        seed_posts(3)
        resp = client.get("/api/posts", params={"page": 99, "limit": 10})
        assert resp.status_code == 200
        assert len(resp.json()) == 3

    def test_second_page_skips_one_page_size(self, client, seed_posts):
        seed_posts(12)
        resp = client.get("/api/posts", params={"page": 2})
        assert [p["title"] for p in resp.json()] == ["Post 1", "Post 0"]

    def test_limit_bounds_page_contents(self, client, seed_posts):
        seed_posts(5)
        assert len(client.get("/api/posts", params={"limit": 2}).json()) == 2

    def test_limit_out_of_range_returns_empty(self, client, seed_posts):
        seed_posts(3)
        assert client.get("/api/posts", params={"limit": 21}).json() == []
        assert client.get("/api/posts", params={"limit": -1}).json() == []
        assert client.get("/api/posts", params={"limit": 0}).json() == []

    def test_non_integer_limit_is_400(self, client, seed_posts):
        seed_posts(1)
        resp = client.get("/api/posts", params={"limit": "ten"})
        assert resp.status_code == 400
        errors = resp.json()["errors"]
        assert errors[0] == {
            "location": "query",
            "field": "limit",
            "message": "Limit query must have valid format",
            "value": "ten",
        }
        assert errors[1]["field"] == "page"

    def test_filters_by_topic_and_user(self, client, users, seed, seed_posts):
        news = seed("topics", {"name": "news"})
        seed_posts(2, topic=news["_id"])
        seed_posts(1, author=str(users["grace"]["_id"]))

        by_topic = client.get("/api/posts", params={"topic": str(news["_id"])}).json()
        by_user = client.get("/api/posts", params={"userid": str(users["grace"]["_id"])}).json()

        assert len(by_topic) == 2
        assert [p["author"]["username"] for p in by_user] == ["grace"]

    def test_invalid_topic_filter(self, client):
        resp = client.get("/api/posts", params={"topic": "nope"})
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["message"] == "Topic id must be valid"

    def test_empty_collection(self, client):
        assert client.get("/api/posts", params={"page": 5}).json() == []


class TestGetPost:
    def test_invalid_id(self, client):
        resp = client.get("/api/posts/not-an-id")
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["message"] == "Post id must be valid"

    def test_missing_post(self, client):
        resp = client.get(f"/api/posts/{ObjectId()}")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Not Found"}

    def test_expands_comments_in_order(self, client, users, author_headers):
        post = _create(client, author_headers).json()
        for title in ("First", "Second"):
            client.post(
                f"/api/posts/{post['id']}/comments",
                json={"email": "reader@example.com", "title": title, "body": "A thoughtful comment."},
            )

        resp = client.get(f"/api/posts/{post['id']}")

        assert resp.status_code == 200
        data = resp.json()
        assert [c["title"] for c in data["comments"]] == ["First", "Second"]
        assert data["author"]["username"] == "ada"
        assert data["topic"]["name"] == "news"


class TestUpdatePost:
    def test_author_updates_present_fields_only(self, client, users, author_headers):
        post = _create(client, author_headers).json()

        resp = client.put(f"/api/posts/{post['id']}", json={"title": "New title"}, headers=author_headers)

        assert resp.status_code == 200
        updated = resp.json()
        assert updated["title"] == "New title"
        assert updated["body"] == BODY_150
        assert updated["topic"] == post["topic"]

    def test_non_author_is_forbidden_and_post_unchanged(self, client, users, author_headers, other_headers, fetch):
        post = _create(client, author_headers).json()

        resp = client.put(f"/api/posts/{post['id']}", json={"title": "Hijacked"}, headers=other_headers)

        assert resp.status_code == 403
        assert resp.json() == {"detail": "Forbidden"}
        assert fetch("posts", {"_id": ObjectId(post["id"])})["title"] == "Hello World"

    def test_author_with_upper_case_hex_subject_can_update(self, client, users, headers_for, fetch):
        headers = headers_for(str(users["ada"]["_id"]).upper())
        post = _create(client, headers).json()
        assert post["author"] == str(users["ada"]["_id"])

        resp = client.put(f"/api/posts/{post['id']}", json={"title": "Renamed"}, headers=headers)

        assert resp.status_code == 200
        assert fetch("posts", {"_id": ObjectId(post["id"])})["title"] == "Renamed"

    def test_missing_post_is_404_for_anyone(self, client, other_headers):
        missing = str(ObjectId())
        assert client.put(f"/api/posts/{missing}", json={"title": "Whatever"}, headers=other_headers).status_code == 404
        assert client.put(f"/api/posts/{missing}", json={"title": "Whatever"}).status_code == 404

    def test_anonymous_on_existing_post_is_401(self, client, users, author_headers):
        post = _create(client, author_headers).json()
        assert client.put(f"/api/posts/{post['id']}", json={"title": "Anon"}).status_code == 401

    def test_topic_must_exist(self, client, users, author_headers):
        post = _create(client, author_headers).json()
        resp = client.put(f"/api/posts/{post['id']}", json={"topic": str(ObjectId())}, headers=author_headers)
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["message"] == "Topic must exist"

    def test_topic_can_be_changed_to_existing(self, client, users, author_headers, seed):
        post = _create(client, author_headers).json()
        sports = seed("topics", {"name": "sports"})
        resp = client.put(f"/api/posts/{post['id']}", json={"topic": str(sports["_id"])}, headers=author_headers)
        assert resp.json()["topic"] == str(sports["_id"])

    def test_invalid_title(self, client, users, author_headers):
        post = _create(client, author_headers).json()
        resp = client.put(f"/api/posts/{post['id']}", json={"title": "x"}, headers=author_headers)
        assert resp.status_code == 400


class TestDeletePost:
    def test_author_deletes_post_with_comments(self, client, users, author_headers, fetch):
        post = _create(client, author_headers).json()
        client.post(
            f"/api/posts/{post['id']}/comments",
            json={"email": "reader@example.com", "title": "Nice", "body": "A thoughtful comment."},
        )

        resp = client.delete(f"/api/posts/{post['id']}", headers=author_headers)

        assert resp.status_code == 200
        assert resp.json()["id"] == post["id"]
        assert fetch("posts", {"_id": ObjectId(post["id"])}) is None
        assert fetch("comments", {"post": ObjectId(post["id"])}) is None
        assert fetch("users", {"username": "ada"})["posts"] == []

    def test_author_with_upper_case_hex_subject_can_delete(self, client, users, headers_for, fetch):
        headers = headers_for(str(users["ada"]["_id"]).upper())
        post = _create(client, headers).json()

        assert client.delete(f"/api/posts/{post['id']}", headers=headers).status_code == 200
        assert fetch("posts", {"_id": ObjectId(post["id"])}) is None

    def test_non_author_is_forbidden(self, client, users, author_headers, other_headers, fetch):
        post = _create(client, author_headers).json()
        assert client.delete(f"/api/posts/{post['id']}", headers=other_headers).status_code == 403
        assert fetch("posts", {"_id": ObjectId(post["id"])}) is not None

    def test_missing_post(self, client):
        assert client.delete(f"/api/posts/{ObjectId()}").status_code == 404
