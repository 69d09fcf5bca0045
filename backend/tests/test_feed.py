"""Tests for the feed interaction layer.

Covers:
- Post create / list / delete (author or admin) with best-effort cascade
- Likes: one record per liker, counter increments at most once per liker
- Comments: add / list / delete, replies left in place, counter upkeep
- Counter drift and reconciliation
"""
from clubhouse.models.post import Comment, Post, PostLike
from clubhouse.models.profile import Profile
from clubhouse.services import feed
from tests.conftest import create_admin, create_member


def _post(client, headers, body="Great session today!", **extra) -> dict:
    resp = client.post("/api/posts/", headers=headers, json={"body": body, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _post_row(db, post_id: str) -> Post:
    db.expire_all()
    return db.query(Post).filter(Post.post_id == post_id).one()


class TestPosts:
    def test_create_post(self, client, db):
        pid, headers = create_member(client, db)
        post = _post(client, headers, title="Recap")
        assert post["author_id"] == pid
        assert post["author_name"] == "Test Member"
        assert post["title"] == "Recap"
        assert post["likes_count"] == 0
        assert post["comment_count"] == 0
        me = client.get("/api/profiles/me", headers=headers).json()
        assert me["stats"]["posts"] == 1

    def test_empty_body_rejected(self, client, db):
        _, headers = create_member(client, db)
        resp = client.post("/api/posts/", headers=headers, json={"body": "   "})
        assert resp.status_code == 400

    def test_pending_member_cannot_post(self, client, db):
        _, headers = create_member(client, db, approved=False)
        assert client.post("/api/posts/", headers=headers, json={"body": "hi"}).status_code == 403

    def test_list_posts(self, client, db):
        _, headers = create_member(client, db)
        _post(client, headers, body="one")
        _post(client, headers, body="two")
        bodies = {p["body"] for p in client.get("/api/posts/", headers=headers).json()}
        assert bodies == {"one", "two"}

    def test_other_member_cannot_delete(self, client, db):
        _, author = create_member(client, db)
        _, other = create_member(client, db)
        post = _post(client, author)
        resp = client.delete(f"/api/posts/{post['post_id']}", headers=other)
        assert resp.status_code == 403

    def test_admin_deletes_with_cascade(self, client, db):
        _, admin_headers = create_admin(client, db)
        author_id, author = create_member(client, db)
        _, fan = create_member(client, db)
        post = _post(client, author)
        client.put(f"/api/posts/{post['post_id']}/like", headers=fan)
        client.post(f"/api/posts/{post['post_id']}/comments", headers=fan, json={"body": "Nice"})
        client.post(f"/api/posts/{post['post_id']}/comments", headers=author, json={"body": "Thanks"})

        resp = client.delete(f"/api/posts/{post['post_id']}", headers=admin_headers)
        assert resp.status_code == 200
        report = resp.json()
        assert report["comments"]["attempted"] == 2
        assert report["comments"]["orphaned"] == []
        assert report["likes"]["attempted"] == 1

        db.expire_all()
        assert db.query(Post).filter(Post.post_id == post["post_id"]).first() is None
        assert db.query(Comment).filter(Comment.post_id == post["post_id"]).count() == 0
        assert db.query(PostLike).filter(PostLike.post_id == post["post_id"]).count() == 0
        assert db.query(Profile).filter(Profile.principal_id == author_id).one().posts_count == 0

    def test_comment_cleanup_failure_does_not_block_delete(self, client, db, monkeypatch):
        author_id, author = create_member(client, db)
        post = _post(client, author)
        client.post(f"/api/posts/{post['post_id']}/comments", headers=author, json={"body": "first"})

        from clubhouse.services import cascade
        original = cascade.run_cascade

        def failing_comments(session, label, child_ids, remove_one):
            if "comments" in label:
                def boom(child_id):
                    from clubhouse.errors import Unavailable
                    raise Unavailable("store timeout")
                return original(session, label, child_ids, boom)
            return original(session, label, child_ids, remove_one)

        monkeypatch.setattr(feed, "run_cascade", failing_comments)
        report = feed.delete_post(db, post["post_id"], author_id)
        assert len(report["comments"]["orphaned"]) == 1
        db.expire_all()
        assert db.query(Post).filter(Post.post_id == post["post_id"]).first() is None


class TestLikes:
    def test_double_like_counts_once(self, client, db):
        _, author = create_member(client, db)
        liker_id, liker = create_member(client, db)
        post = _post(client, author)

        first = client.put(f"/api/posts/{post['post_id']}/like", headers=liker).json()
        second = client.put(f"/api/posts/{post['post_id']}/like", headers=liker).json()
        assert first == {"post_id": post["post_id"], "liked": True, "likes_count": 1}
        assert second["likes_count"] == 1
        assert db.query(PostLike).filter(PostLike.post_id == post["post_id"]).count() == 1

    def test_counter_increments_once_per_distinct_liker(self, client, db):
        _, author = create_member(client, db)
        post = _post(client, author)
        for _ in range(3):
            _, liker = create_member(client, db)
            client.put(f"/api/posts/{post['post_id']}/like", headers=liker)
            client.put(f"/api/posts/{post['post_id']}/like", headers=liker)
        assert _post_row(db, post["post_id"]).likes_count == 3

    def test_unlike(self, client, db):
        _, author = create_member(client, db)
        _, liker = create_member(client, db)
        post = _post(client, author)
        client.put(f"/api/posts/{post['post_id']}/like", headers=liker)
        resp = client.delete(f"/api/posts/{post['post_id']}/like", headers=liker).json()
        assert resp["liked"] is False
        assert resp["likes_count"] == 0
        # Unlike again never goes negative
        resp = client.delete(f"/api/posts/{post['post_id']}/like", headers=liker).json()
        assert resp["likes_count"] == 0

    def test_has_liked(self, client, db):
        _, author = create_member(client, db)
        liker_id, liker = create_member(client, db)
        post = _post(client, author)
        assert client.get(f"/api/posts/{post['post_id']}/like", headers=liker).json()["liked"] is False
        client.put(f"/api/posts/{post['post_id']}/like", headers=liker)
        assert client.get(f"/api/posts/{post['post_id']}/like", headers=liker).json()["liked"] is True
        assert feed.has_liked(db, post["post_id"], liker_id)

    def test_like_missing_post(self, client, db):
        _, headers = create_member(client, db)
        assert client.put("/api/posts/nope/like", headers=headers).status_code == 404


class TestComments:
    def test_add_and_list(self, client, db):
        _, author = create_member(client, db)
        post = _post(client, author)
        resp = client.post(f"/api/posts/{post['post_id']}/comments", headers=author, json={"body": "first"})
        assert resp.status_code == 201
        comment = resp.json()
        assert comment["author_name"] == "Test Member"

        comments = client.get(f"/api/posts/{post['post_id']}/comments", headers=author).json()
        assert [c["body"] for c in comments] == ["first"]
        assert _post_row(db, post["post_id"]).comment_count == 1

    def test_empty_comment_rejected(self, client, db):
        _, author = create_member(client, db)
        post = _post(client, author)
        resp = client.post(f"/api/posts/{post['post_id']}/comments", headers=author, json={"body": ""})
        assert resp.status_code == 400

    def test_reply_to_other_posts_comment_rejected(self, client, db):
        _, author = create_member(client, db)
        first = _post(client, author)
        second = _post(client, author)
        parent = client.post(f"/api/posts/{first['post_id']}/comments", headers=author, json={"body": "p"}).json()
        resp = client.post(f"/api/posts/{second['post_id']}/comments", headers=author,
                           json={"body": "r", "parent_comment_id": parent["comment_id"]})
        assert resp.status_code == 400

    def test_delete_comment_leaves_replies(self, client, db):
        _, author = create_member(client, db)
        post = _post(client, author)
        parent = client.post(f"/api/posts/{post['post_id']}/comments", headers=author, json={"body": "p"}).json()
        reply = client.post(f"/api/posts/{post['post_id']}/comments", headers=author,
                            json={"body": "r", "parent_comment_id": parent["comment_id"]}).json()

        assert client.delete(f"/api/posts/comments/{parent['comment_id']}", headers=author).status_code == 204
        remaining = client.get(f"/api/posts/{post['post_id']}/comments", headers=author).json()
        assert [c["comment_id"] for c in remaining] == [reply["comment_id"]]
        assert remaining[0]["parent_comment_id"] == parent["comment_id"]
        assert _post_row(db, post["post_id"]).comment_count == 1

    def test_only_author_or_admin_deletes_comment(self, client, db):
        _, author = create_member(client, db)
        _, other = create_member(client, db)
        _, admin_headers = create_admin(client, db)
        post = _post(client, author)
        comment = client.post(f"/api/posts/{post['post_id']}/comments", headers=author, json={"body": "x"}).json()
        assert client.delete(f"/api/posts/comments/{comment['comment_id']}", headers=other).status_code == 403
        assert client.delete(f"/api/posts/comments/{comment['comment_id']}", headers=admin_headers).status_code == 204


class TestReconcile:
    def test_reconcile_repairs_drift(self, client, db):
        _, admin_headers = create_admin(client, db)
        _, author = create_member(client, db)
        post = _post(client, author)
        client.put(f"/api/posts/{post['post_id']}/like", headers=author)
        db.query(Post).filter(Post.post_id == post["post_id"]).update({"likes_count": 7, "comment_count": 3})
        db.commit()

        resp = client.post(f"/api/posts/{post['post_id']}/reconcile", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["likes_count"] == {"before": 7, "after": 1}
        assert data["comment_count"] == {"before": 3, "after": 0}
        row = _post_row(db, post["post_id"])
        assert (row.likes_count, row.comment_count) == (1, 0)
