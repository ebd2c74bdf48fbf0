async def test_public_profile(client, forum, member):
    section = await forum.section("Aquariums")
    thread = await forum.thread(section["slug"])
    topic = await forum.topic(thread["slug"])
    await forum.comment(topic["slug"])
    await forum.comment(topic["slug"], "Second thought")

    res = await client.get("/api/v1/users/member")
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["username"] == "member"
    assert data["commentsCount"] == 2
    assert data["postsCount"] == 1
    assert "email" not in data
    assert "status" not in data


async def test_unknown_profile(client):
    res = await client.get("/api/v1/users/nobody")
    assert res.status_code == 404
    assert res.json()["message"] == "User not found"


async def test_update_profile(client, member_headers):
    res = await client.patch(
        "/api/v1/users/profile",
        json={"fullName": "Marina Reef", "age": 31, "bio": "Keeps shrimp", "email": "NEW@mail.com"},
        headers=member_headers,
    )
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["fullName"] == "Marina Reef"
    assert data["age"] == 31
    assert data["email"] == "new@mail.com"
    assert data["username"] == "member"


async def test_update_profile_clears_optional_text(client, member_headers):
    await client.patch("/api/v1/users/profile", json={"bio": "Hello"}, headers=member_headers)
    res = await client.patch(
        "/api/v1/users/profile", json={"bio": None, "username": None}, headers=member_headers
    )

    assert res.json()["data"]["bio"] == ""
    assert res.json()["data"]["username"] == "member"


async def test_update_profile_duplicate_username(client, make_user, member_headers):
    await make_user("taken")
    res = await client.patch(
        "/api/v1/users/profile", json={"username": "taken"}, headers=member_headers
    )

    assert res.status_code == 409
    assert res.json()["errors"] == [{"field": "username", "message": "Username already exists"}]


async def test_update_profile_validation(client, member_headers):
    res = await client.patch("/api/v1/users/profile", json={"age": 5}, headers=member_headers)
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "age"


async def test_disable_account(client, member, member_headers, fetch_user):
    wrong = await client.patch(
        "/api/v1/users/profile/disable", json={"password": "Nope123!x"}, headers=member_headers
    )
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Incorrect password"

    res = await client.patch(
        "/api/v1/users/profile/disable", json={"password": "Password123!"}, headers=member_headers
    )
    assert res.status_code == 200
    assert "Max-Age=0" in res.headers["set-cookie"]

    user = await fetch_user(member.id)
    assert user.username == f"deleted_user_{member.id}"
    assert (await client.get("/api/v1/auth/me", headers=member_headers)).status_code == 403
