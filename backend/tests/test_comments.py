import pytest


@pytest.fixture
async def topic(forum) -> dict:
    section = await forum.section("Aquariums")
    thread = await forum.thread(section["slug"], "Reef Tanks")
    return await forum.topic(thread["slug"])


async def test_create_comment_updates_topic(client, forum, topic):
    comment = await forum.comment(topic["slug"], "Zoanthids are hardy.")

    assert comment["content"] == "Zoanthids are hardy."
    assert comment["likesCount"] == 0
    assert comment["topic"]["slug"] == topic["slug"]

    refreshed = await forum.get(f"/topics/{topic['slug']}")
    assert refreshed["commentsCount"] == 1


async def test_comment_on_locked_topic(client, forum, topic, admin_headers, member_headers):
    await client.patch(f"/api/v1/admin/topics/{topic['id']}/lock", headers=admin_headers)

    res = await client.post(
        f"/api/v1/comments/{topic['slug']}", json={"content": "Hello"}, headers=member_headers
    )
    assert res.status_code == 403
    assert res.json()["message"] == "This topic is locked. You can't add comments."


async def test_comment_content_required(client, topic, member_headers):
    res = await client.post(
        f"/api/v1/comments/{topic['slug']}", json={"content": ""}, headers=member_headers
    )
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "content"


async def test_list_comments_pinned_first(client, forum, topic, admin_headers):
    first = await forum.comment(topic["slug"], "First")
    second = await forum.comment(topic["slug"], "Second")
    await client.patch(f"/api/v1/admin/comments/{second['id']}/pin", headers=admin_headers)

    body = (await client.get(f"/api/v1/comments/{topic['slug']}")).json()
    assert [c["id"] for c in body["data"]] == [second["id"], first["id"]]
    assert body["pagination"]["totalItems"] == 2

    again = await client.patch(f"/api/v1/admin/comments/{second['id']}/pin", headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["message"] == "Comment is already pinned"


async def test_update_comment_owner_only(client, forum, topic, make_user, headers_for, member_headers):
    comment = await forum.comment(topic["slug"])
    stranger = await make_user("stranger")

    res = await client.patch(
        f"/api/v1/comments/{comment['id']}",
        json={"content": "Not mine"},
        headers=headers_for(stranger),
    )
    assert res.status_code == 401
    assert res.json()["message"] == "You are not allowed to modify this comment"

    res = await client.patch(
        f"/api/v1/comments/{comment['id']}", json={"content": "Edited"}, headers=member_headers
    )
    assert res.json()["data"]["content"] == "Edited"


async def test_soft_delete_comment(client, forum, topic, member_headers, member):
    comment = await forum.comment(topic["slug"])

    res = await client.delete(f"/api/v1/comments/{comment['id']}", headers=member_headers)
    assert res.status_code == 200

    assert (await forum.get(f"/topics/{topic['slug']}"))["commentsCount"] == 0
    assert (await forum.get(f"/comments/{topic['slug']}")) == []
    assert (await forum.get(f"/users/{member.username}"))["commentsCount"] == 0

    again = await client.delete(f"/api/v1/comments/{comment['id']}", headers=member_headers)
    assert again.status_code == 404


async def test_like_and_dislike(client, forum, topic, make_user, headers_for):
    comment = await forum.comment(topic["slug"])
    fan = headers_for(await make_user("fan"))
    url = f"/api/v1/comments/{comment['id']}"

    res = await client.patch(f"{url}/like", headers=fan)
    assert res.status_code == 200
    assert res.json()["data"] == {"likesCount": 1}

    res = await client.patch(f"{url}/like", headers=fan)
    assert res.status_code == 400
    assert res.json()["message"] == "Comment already liked"

    listed = await forum.get(f"/comments/{topic['slug']}")
    assert listed[0]["likesCount"] == 1

    res = await client.patch(f"{url}/dislike", headers=fan)
    assert res.json()["data"] == {"likesCount": 0}

    res = await client.patch(f"{url}/dislike", headers=fan)
    assert res.status_code == 400
    assert res.json()["message"] == "Comment isn't liked"


async def test_like_missing_comment(client, member_headers):
    res = await client.patch("/api/v1/comments/999/like", headers=member_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "Comment not found"
