import logging
from datetime import datetime, timedelta

from models.block import Block
from models.feed import FeedEntry
from models.follower import Follower
from models.post import Post
from services.feed_service import FeedService
from services.tag_service import TagService


def follow_tag(test_db, settings, user, name):
    tag = TagService(test_db, settings).resolve_tags(name)[0]
    user.followed_tags.append(tag)
    test_db.commit()


def feed_ids(client, user, auth_headers):
    response = client.get(f"/api/users/{user.id}/feed", headers=auth_headers(user))
    assert response.status_code == 200
    return [post["id"] for post in response.json()]


def test_fanout_reaches_author_and_tag_followers_once(client, test_db, settings, create_user, create_post, auth_headers):
    author = create_user()
    tag_fan = create_user()
    author_fan = create_user()
    both = create_user()
    stranger = create_user()

    follow_tag(test_db, settings, tag_fan, "music")
    follow_tag(test_db, settings, both, "music")
    test_db.add_all([
        Follower(follower_id=author_fan.id, followed_id=author.id),
        Follower(follower_id=both.id, followed_id=author.id),
    ])
    test_db.commit()

    post_id = create_post(author, tags="Music")

    for user in (tag_fan, author_fan, both):
        assert feed_ids(client, user, auth_headers) == [post_id]
    assert feed_ids(client, stranger, auth_headers) == []
    assert test_db.query(FeedEntry).filter(FeedEntry.post_id == post_id).count() == 3


def test_fanout_is_idempotent(test_db, settings, create_user, create_post):
    author = create_user()
    fan = create_user()
    test_db.add(Follower(follower_id=fan.id, followed_id=author.id))
    test_db.commit()
    post_id = create_post(author)

    assert FeedService(test_db, settings).fanout(post_id) == 0
    assert test_db.query(FeedEntry).filter(FeedEntry.user_id == fan.id).count() == 1


def test_feed_newest_first(client, test_db, create_user, create_post, auth_headers):
    author = create_user()
    fan = create_user()
    test_db.add(Follower(follower_id=fan.id, followed_id=author.id))
    test_db.commit()

    first = create_post(author, title="first")
    second = create_post(author, title="second")

    assert feed_ids(client, fan, auth_headers) == [second, first]


def test_old_entries_are_pruned(test_db, settings, create_user, create_post):
    author = create_user()
    fan = create_user()
    test_db.add(Follower(follower_id=fan.id, followed_id=author.id))
    test_db.commit()
    old_id = create_post(author, title="old")
    new_id = create_post(author, title="new")

    test_db.get(Post, old_id).created_at = datetime.utcnow() - timedelta(days=settings.FEED_RETENTION_DAYS + 1)
    test_db.commit()

    feed = FeedService(test_db, settings).feed_for(fan)
    assert [post.id for post in feed] == [new_id]
    assert test_db.query(FeedEntry).filter(FeedEntry.post_id == old_id).count() == 0


def test_feed_hides_blocked_authors_and_tags(client, test_db, settings, create_user, create_post, auth_headers):
    loud = create_user()
    quiet = create_user()
    reader = create_user()
    test_db.add_all([
        Follower(follower_id=reader.id, followed_id=loud.id),
        Follower(follower_id=reader.id, followed_id=quiet.id),
    ])
    test_db.commit()

    create_post(loud, title="shouting")
    spoiler = create_post(quiet, title="ending revealed", tags="spoilers")
    calm = create_post(quiet, title="calm")

    test_db.add(Block(blocker_id=reader.id, blocked_id=loud.id))
    reader.blocked_tags.append(TagService(test_db, settings).get_by_name("spoilers"))
    test_db.commit()

    ids = feed_ids(client, reader, auth_headers)
    assert calm in ids
    assert spoiler not in ids
    assert len(ids) == 1


def test_feed_requires_own_token(client, create_user, auth_headers):
    alice = create_user()
    bob = create_user()
    response = client.get(f"/api/users/{alice.id}/feed", headers=auth_headers(bob))
    assert response.status_code == 403


def test_fanout_failure_is_logged_not_raised(client, test_db, create_user, auth_headers, monkeypatch, caplog):
    def broken_fanout(self, post_id):
        raise RuntimeError("feed store unavailable")

    monkeypatch.setattr(FeedService, "fanout", broken_fanout)
    author = create_user()

    with caplog.at_level(logging.ERROR, logger="tasks.feed_tasks"):
        response = client.post(
            "/api/posts/",
            json={"userId": author.id, "title": "still published"},
            headers=auth_headers(author),
        )

    assert response.status_code == 201
    assert test_db.get(Post, response.json()["postId"]) is not None
    assert any(
        record.name == "tasks.feed_tasks" and record.levelno == logging.ERROR
        for record in caplog.records
    )
