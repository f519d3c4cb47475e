import pytest
from sqlalchemy import select

from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from database import SessionLocal
from models.post import Post, post_tags
from models.tag import Tag, TagAlias
from services.tag_service import TagService, split_tag_string


def test_split_tag_string():
    assert split_tag_string("Cat cat DOG") == ["cat", "dog"]
    assert split_tag_string("   ") == []
    assert split_tag_string(None) == []


def test_resolve_collapses_case_and_duplicates(test_db, settings):
    tags = TagService(test_db, settings).resolve_tags("Cat cat DOG")
    test_db.commit()

    assert sorted(tag.name for tag in tags) == ["cat", "dog"]
    assert test_db.query(Tag).count() == 2


def test_resolve_reuses_existing_tags(test_db, settings):
    service = TagService(test_db, settings)
    first = service.resolve_tags("python")
    test_db.commit()
    second = service.resolve_tags("PYTHON")

    assert first[0].id == second[0].id
    assert test_db.query(Tag).count() == 1


def test_resolve_empty_input(test_db, settings):
    assert TagService(test_db, settings).resolve_tags("") == []
    assert TagService(test_db, settings).resolve_tags(None) == []


def test_alias_resolves_to_canonical_tag(test_db, settings):
    tag = Tag(name="python")
    tag.aliases.append(TagAlias(alias="py"))
    test_db.add(tag)
    test_db.commit()

    resolved = TagService(test_db, settings).resolve_tags("py python")
    assert [t.id for t in resolved] == [tag.id]
    assert test_db.query(Tag).count() == 1


def test_find_tags_never_creates(test_db, settings):
    assert TagService(test_db, settings).find_tags(["ghost"]) == []
    assert test_db.query(Tag).count() == 0


def test_merge_moves_name_and_aliases(test_db, settings, create_user, token_for):
    admin = create_user(is_admin=True)
    foo = Tag(name="foo")
    foo.aliases.append(TagAlias(alias="fu"))
    bar = Tag(name="bar")
    bar.aliases.append(TagAlias(alias="baz"))
    test_db.add_all([foo, bar])
    test_db.commit()

    service = TagService(test_db, settings)
    merged = service.merge_tags(admin.id, token_for(admin), "foo", "bar")

    assert merged.name == "bar"
    assert merged.alias_names == {"baz", "foo", "fu"}
    assert service.resolve_tags("foo")[0].id == bar.id
    assert service.resolve_tags("fu")[0].id == bar.id
    assert test_db.query(Tag).filter(Tag.name == "foo").first() is None


def test_merge_relinks_posts_and_followers(test_db, settings, create_user, token_for, create_post):
    admin = create_user(is_admin=True)
    reader = create_user()
    post_id = create_post(admin, tags="foo")
    service = TagService(test_db, settings)
    reader.followed_tags.append(service.get_by_name("foo"))
    test_db.commit()

    bar = Tag(name="bar")
    test_db.add(bar)
    test_db.commit()
    service.merge_tags(admin.id, token_for(admin), "foo", "bar")

    test_db.expire_all()
    assert [tag.name for tag in reader.followed_tags] == ["bar"]
    assert test_db.get(Post, post_id).tag_names == ["bar"]


def test_merge_requires_admin(test_db, settings, create_user, token_for):
    user = create_user()
    test_db.add_all([Tag(name="foo"), Tag(name="bar")])
    test_db.commit()

    with pytest.raises(ForbiddenError):
        TagService(test_db, settings).merge_tags(user.id, token_for(user), "foo", "bar")


def test_merge_into_itself_rejected(test_db, settings, create_user, token_for):
    admin = create_user(is_admin=True)
    test_db.add(Tag(name="foo"))
    test_db.commit()

    with pytest.raises(ValidationError):
        TagService(test_db, settings).merge_tags(admin.id, token_for(admin), "foo", "foo")


def test_merge_unknown_tag(test_db, settings, create_user, token_for):
    admin = create_user(is_admin=True)
    test_db.add(Tag(name="bar"))
    test_db.commit()

    with pytest.raises(NotFoundError):
        TagService(test_db, settings).merge_tags(admin.id, token_for(admin), "nope", "bar")


def test_merge_endpoint(client, test_db, create_user, auth_headers):
    admin = create_user(is_admin=True)
    user = create_user()
    test_db.add_all([Tag(name="foo"), Tag(name="bar")])
    test_db.commit()
    body = {"userId": user.id, "mergeFromName": "foo", "mergeToName": "bar"}

    response = client.post("/api/posts/mergetags", json=body, headers=auth_headers(user))
    assert response.status_code == 403
    assert response.json() == {"error": "Admin privileges required"}

    body["userId"] = admin.id
    response = client.post("/api/posts/mergetags", json=body, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json() == {"name": "bar", "aliases": ["foo"]}


def test_concurrent_tag_creation_conflicts(test_db, settings, monkeypatch):
    original_lookup = TagService._lookup

    def lookup_then_lose_race(self, token):
        found = original_lookup(self, token)
        other = SessionLocal()
        try:
            other.add(Tag(name=token))
            other.commit()
        finally:
            other.close()
        return found

    monkeypatch.setattr(TagService, "_lookup", lookup_then_lose_race)
    with pytest.raises(ConflictError):
        TagService(test_db, settings).resolve_tags("racing")

    assert test_db.query(Tag).filter(Tag.name == "racing").count() == 1


def test_merge_relinks_soft_deleted_posts(test_db, settings, create_user, token_for, create_post):
    admin = create_user(is_admin=True)
    post_id = create_post(admin, tags="foo")
    bar = Tag(name="bar")
    test_db.add(bar)
    test_db.get(Post, post_id).soft_delete()
    test_db.commit()

    TagService(test_db, settings).merge_tags(admin.id, token_for(admin), "foo", "bar")

    linked = test_db.execute(
        select(post_tags.c.tag_id).where(post_tags.c.post_id == post_id)
    ).scalars().all()
    assert linked == [bar.id]
