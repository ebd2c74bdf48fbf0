from tropicario.core.config import Settings
from tropicario.modules.accounts.email import ConsoleEmailTransport, EmailService, build_transport


async def test_health(client):
    res = await client.get("/api/health")
    body = res.json()

    assert res.status_code == 200
    assert body["success"] is True
    assert body["message"] == "Server is running"
    assert body["environment"] == "test"


async def test_unknown_route(client):
    res = await client.get("/api/v1/nowhere")

    assert res.status_code == 404
    assert res.json() == {"success": False, "status": 404, "message": "Route not found"}


async def test_non_integer_id_is_a_validation_error(client, admin_headers):
    res = await client.delete("/api/v1/sections/abc", headers=admin_headers)

    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "section_id"


async def test_verification_email_links_to_api(mailer):
    settings = Settings(_env_file=None, backend_url="https://forum.example.com/")
    service = EmailService(mailer, settings)

    await service.send_verification("reef@mail.com", "reef", "ab" * 32)

    message = mailer.sent[0]
    assert message.to == "reef@mail.com"
    assert "https://forum.example.com/api/v1/auth/verify-email/" + "ab" * 32 in message.text
    assert "Hi reef" in message.html


def test_console_transport_is_default():
    assert isinstance(build_transport(Settings(_env_file=None)), ConsoleEmailTransport)
