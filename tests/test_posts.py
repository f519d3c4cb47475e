from datetime import datetime, timedelta, timezone

from models.post import Post
from services.post_service import as_naive_utc


def test_post_needs_title_unless_reply(client, create_user, auth_headers):
    user = create_user()
    response = client.post(
        "/api/posts/",
        json={"userId": user.id, "text": "no title"},
        headers=auth_headers(user),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Post that isn't a reply must contain content"}


def test_reply_without_content(client, create_user, create_post, auth_headers):
    user = create_user()
    parent_id = create_post(user)

    response = client.post(
        "/api/posts/",
        json={"userId": user.id, "replyTo": parent_id},
        headers=auth_headers(user),
    )
    assert response.status_code == 201

    parent = client.get(f"/api/posts/{parent_id}").json()
    assert [reply["id"] for reply in parent["replies"]] == [response.json()["postId"]]


def test_reply_to_missing_post(client, create_user, auth_headers):
    user = create_user()
    response = client.post(
        "/api/posts/",
        json={"userId": user.id, "replyTo": 12345},
        headers=auth_headers(user),
    )
    assert response.status_code == 404


def test_get_post(client, create_user, create_post):
    user = create_user(name="writer")
    post_id = create_post(user, title="Hello", tags="News news WORLD")

    data = client.get(f"/api/posts/{post_id}").json()
    assert data["title"] == "Hello"
    assert data["author"] == {"id": user.id, "name": "writer"}
    assert data["replyTo"] is None
    assert data["tags"] == ["news", "world"]
    assert "createdAt" in data and "updatedAt" in data


def test_post_for_someone_else_is_forbidden(client, create_user, auth_headers):
    alice = create_user()
    bob = create_user()
    response = client.post(
        "/api/posts/",
        json={"userId": alice.id, "title": "impostor"},
        headers=auth_headers(bob),
    )
    assert response.status_code == 403


def test_banned_user_cannot_post(client, create_user, auth_headers):
    user = create_user(is_banned=True)
    response = client.post(
        "/api/posts/",
        json={"userId": user.id, "title": "hi"},
        headers=auth_headers(user),
    )
    assert response.status_code == 403
    assert response.json() == {"error": "Banned users may not create posts"}


def test_edit_post(client, create_user, create_post, auth_headers):
    author = create_user()
    other = create_user()
    post_id = create_post(author)

    response = client.patch(
        f"/api/posts/{post_id}",
        json={"userId": other.id, "title": "hijacked"},
        headers=auth_headers(other),
    )
    assert response.status_code == 403

    response = client.patch(
        f"/api/posts/{post_id}",
        json={"userId": author.id, "title": ""},
        headers=auth_headers(author),
    )
    assert response.status_code == 400

    response = client.patch(
        f"/api/posts/{post_id}",
        json={"userId": author.id, "title": "Edited", "text": "new body"},
        headers=auth_headers(author),
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Edited"
    assert response.json()["text"] == "new body"


def test_add_tags_requires_ownership(client, create_user, create_post, auth_headers):
    author = create_user()
    other = create_user()
    post_id = create_post(author, tags="one")

    response = client.post(
        f"/api/posts/{post_id}/tags",
        json={"userId": other.id, "tagString": "two"},
        headers=auth_headers(other),
    )
    assert response.status_code == 403

    response = client.post(
        f"/api/posts/{post_id}/tags",
        json={"userId": author.id, "tagString": "TWO one"},
        headers=auth_headers(author),
    )
    assert response.status_code == 200
    assert response.json()["tags"] == ["one", "two"]


def test_delete_post(client, create_user, create_post, auth_headers):
    author = create_user()
    other = create_user()
    post_id = create_post(author)

    response = client.request(
        "DELETE", f"/api/posts/{post_id}", json={"userId": other.id}, headers=auth_headers(other)
    )
    assert response.status_code == 403

    response = client.request(
        "DELETE", f"/api/posts/{post_id}", json={"userId": author.id}, headers=auth_headers(author)
    )
    assert response.status_code == 204
    assert client.get(f"/api/posts/{post_id}").status_code == 404


def test_admin_can_delete_any_post(client, create_user, create_post, auth_headers):
    author = create_user()
    admin = create_user(is_admin=True)
    post_id = create_post(author)

    response = client.request(
        "DELETE", f"/api/posts/{post_id}", json={"userId": admin.id}, headers=auth_headers(admin)
    )
    assert response.status_code == 204


def test_search_by_tags(client, create_user, create_post):
    user = create_user(name="searcher")
    both = create_post(user, title="both", tags="red blue")
    red = create_post(user, title="red only", tags="red")
    create_post(user, title="untagged")

    ids = [p["id"] for p in client.get("/api/posts/search", params={"includeTags": ["red"]}).json()]
    assert sorted(ids) == sorted([both, red])

    ids = [p["id"] for p in client.get(
        "/api/posts/search", params={"includeTags": ["red", "blue"]}
    ).json()]
    assert ids == [both]

    ids = [p["id"] for p in client.get(
        "/api/posts/search", params={"includeTags": ["red"], "excludeTags": ["blue"]}
    ).json()]
    assert ids == [red]

    assert client.get("/api/posts/search", params={"includeTags": ["never-used"]}).json() == []


def test_search_by_text_and_author(client, create_user, create_post):
    alice = create_user(name="alice")
    bob = create_user(name="bob")
    create_post(alice, title="Gardening tips", text="water daily")
    create_post(bob, title="Gardening fails", text="forgot to water")

    results = client.get("/api/posts/search", params={"authorName": "bob", "titleContains": "Garden"}).json()
    assert [p["title"] for p in results] == ["Gardening fails"]

    results = client.get("/api/posts/search", params={"bodyContains": "daily"}).json()
    assert [p["title"] for p in results] == ["Gardening tips"]


def test_search_by_date(client, test_db, create_user, create_post):
    user = create_user()
    post_id = create_post(user, title="ancient")
    test_db.get(Post, post_id).created_at = datetime.utcnow() - timedelta(days=10)
    test_db.commit()
    create_post(user, title="fresh")

    cutoff = (datetime.utcnow() - timedelta(days=1)).isoformat()
    older = client.get("/api/posts/search", params={"olderThan": cutoff}).json()
    newer = client.get("/api/posts/search", params={"newerThan": cutoff}).json()
    assert [p["title"] for p in older] == ["ancient"]
    assert [p["title"] for p in newer] == ["fresh"]


def test_as_naive_utc():
    plus_five = timezone(timedelta(hours=5))
    assert as_naive_utc(datetime(2026, 1, 1, 12, 0, tzinfo=plus_five)) == datetime(2026, 1, 1, 7, 0)
    assert as_naive_utc(datetime(2026, 1, 1, 12, 0)) == datetime(2026, 1, 1, 12, 0)
    assert as_naive_utc(None) is None


def test_search_by_date_with_offset(client, create_user, create_post):
    user = create_user()
    create_post(user, title="just now")

    hour_ago = (datetime.now(timezone.utc) - timedelta(hours=1)).astimezone(timezone(timedelta(hours=5)))
    newer = client.get("/api/posts/search", params={"newerThan": hour_ago.isoformat()}).json()
    older = client.get("/api/posts/search", params={"olderThan": hour_ago.isoformat()}).json()
    assert [p["title"] for p in newer] == ["just now"]
    assert older == []
