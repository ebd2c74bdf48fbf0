from tropicario.models import UserRole, UserStatus


async def test_admin_routes_reject_members(client, member_headers):
    res = await client.get("/api/v1/admin/dashboard", headers=member_headers)
    assert res.status_code == 401
    assert res.json()["message"] == "Unauthorized"


async def test_dashboard(client, forum, admin_headers, make_user):
    await make_user("rowdy", status=UserStatus.BANNED)
    section = await forum.section("Aquariums")
    thread = await forum.thread(section["slug"])
    topic = await forum.topic(thread["slug"])
    await forum.comment(topic["slug"])

    res = await client.get("/api/v1/admin/dashboard", headers=admin_headers)
    data = res.json()["data"]

    assert res.status_code == 200
    assert data["stats"] == {
        "totalUsers": 3,
        "activeUsers": 2,
        "bannedUsers": 1,
        "totalSections": 1,
        "totalThreads": 1,
        "totalTopics": 1,
        "totalComments": 1,
    }
    assert data["recentUsers"][0]["username"] == "rowdy"
    assert data["recentTopics"][0]["slug"] == topic["slug"]


async def test_list_users_filters(client, admin_headers, member, make_user):
    await make_user("rowdy", status=UserStatus.BANNED, full_name="Rowdy Piper")

    banned = (await client.get("/api/v1/admin/users?status=banned", headers=admin_headers)).json()
    assert [u["username"] for u in banned["data"]] == ["rowdy"]

    found = (await client.get("/api/v1/admin/users?search=piper", headers=admin_headers)).json()
    assert [u["username"] for u in found["data"]] == ["rowdy"]

    admins = (await client.get("/api/v1/admin/users?role=admin", headers=admin_headers)).json()
    assert [u["role"] for u in admins["data"]] == ["admin"]

    ordered = (
        await client.get("/api/v1/admin/users?sortBy=username", headers=admin_headers)
    ).json()
    assert [u["username"] for u in ordered["data"]] == ["admin", "member", "rowdy"]
    assert "email" in ordered["data"][0]


async def test_get_user(client, admin_headers, member):
    res = await client.get(f"/api/v1/admin/users/{member.id}", headers=admin_headers)
    assert res.json()["data"]["email"] == member.email

    missing = await client.get("/api/v1/admin/users/999", headers=admin_headers)
    assert missing.status_code == 404


async def test_ban_and_unban(client, admin_headers, member, member_headers):
    res = await client.patch(f"/api/v1/admin/users/{member.id}/ban", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["message"] == "User member has been banned"
    assert res.json()["data"]["status"] == "banned"

    again = await client.patch(f"/api/v1/admin/users/{member.id}/ban", headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["message"] == "User is already banned"

    blocked = await client.get("/api/v1/auth/me", headers=member_headers)
    assert blocked.status_code == 403

    res = await client.patch(f"/api/v1/admin/users/{member.id}/unban", headers=admin_headers)
    assert res.json()["data"]["status"] == "active"
    assert (await client.get("/api/v1/auth/me", headers=member_headers)).status_code == 200

    res = await client.patch(f"/api/v1/admin/users/{member.id}/unban", headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "User is not banned"


async def test_admins_cannot_be_banned_or_deleted(client, admin, admin_headers, make_user):
    other = await make_user("moderator", role=UserRole.ADMIN)

    res = await client.patch(f"/api/v1/admin/users/{other.id}/ban", headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "You can not ban another admin - moderator"

    res = await client.delete(f"/api/v1/admin/users/{admin.id}", headers=admin_headers)
    assert res.status_code == 400


async def test_delete_user_anonymizes(client, admin_headers, member, fetch_user):
    res = await client.delete(f"/api/v1/admin/users/{member.id}", headers=admin_headers)
    assert res.status_code == 200

    user = await fetch_user(member.id)
    assert user.status == UserStatus.DISABLED
    assert user.username != "member"
    assert user.email != member.email

    assert (await client.get("/api/v1/users/member")).status_code == 404

    again = await client.delete(f"/api/v1/admin/users/{member.id}", headers=admin_headers)
    assert again.status_code == 400
