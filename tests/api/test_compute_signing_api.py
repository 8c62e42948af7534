"""HTTP tests for /invoke-lambda and /signed-url."""

import json
import time
from urllib.parse import parse_qs, urlparse

import pytest
from botocore.exceptions import ClientError

from app.main import app
from conftest import CDN_DOMAIN

pytestmark = [pytest.mark.api, pytest.mark.asyncio]


async def test_invoke_lambda_relays_payload(client, lambda_client, make_lambda_response):
    lambda_client.invoke.return_value = make_lambda_response(
        json.dumps({"statusCode": 200, "body": "notebook costs 12.5"}).encode()
    )

    response = await client.post("/invoke-lambda", json={"name": "notebook", "price": 12.5})

    assert response.status_code == 200
    assert response.json() == {"statusCode": 200, "body": "notebook costs 12.5"}
    sent = json.loads(lambda_client.invoke.call_args.kwargs["Payload"])
    assert sent == {"name": "notebook", "price": 12.5}


async def test_invoke_lambda_failure_is_400(client, lambda_client):
    lambda_client.invoke.side_effect = ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": "Function not found"}},
        "Invoke",
    )

    response = await client.post("/invoke-lambda", json={"name": "notebook", "price": 1})

    assert response.status_code == 400
    assert "Function not found" in response.json()["detail"]


async def test_invoke_lambda_function_error_is_400(client, lambda_client, make_lambda_response):
    lambda_client.invoke.return_value = make_lambda_response(
        b'{"errorMessage": "boom"}', function_error="Unhandled"
    )

    response = await client.post("/invoke-lambda", json={"name": "notebook", "price": 1})

    assert response.status_code == 400
    assert "boom" in response.json()["detail"]


async def test_invoke_lambda_bad_body_is_400(client, lambda_client):
    response = await client.post("/invoke-lambda", json={"name": "notebook"})

    assert response.status_code == 400
    lambda_client.invoke.assert_not_called()


async def test_signed_url(client):
    start = int(time.time())

    response = await client.get("/signed-url", params={"path": "videos/a.mp4"})

    assert response.status_code == 200
    body = response.json()
    assert body["statusCode"] == 200

    parsed = urlparse(body["signedUrl"])
    query = parse_qs(parsed.query)
    assert parsed.netloc == CDN_DOMAIN
    assert parsed.path == "/videos/a.mp4"
    assert abs(int(query["Expires"][0]) - (start + 3600)) <= 5
    assert query["Signature"][0]


async def test_signed_url_custom_ttl(client):
    start = int(time.time())

    response = await client.get("/signed-url", params={"path": "videos/a.mp4", "ttl": 60})

    expires = int(parse_qs(urlparse(response.json()["signedUrl"]).query)["Expires"][0])
    assert abs(expires - (start + 60)) <= 5


async def test_signed_url_missing_path_is_404(client, signer, monkeypatch):
    calls = []
    monkeypatch.setattr(signer, "sign", lambda *a, **kw: calls.append(a))

    response = await client.get("/signed-url")

    assert response.status_code == 404
    assert calls == []


async def test_signed_url_invalid_path_is_400(client):
    response = await client.get("/signed-url", params={"path": "../private/key.pem"})
    assert response.status_code == 400


async def test_signed_url_not_configured_is_500(client):
    app.state.url_signer = None

    response = await client.get("/signed-url", params={"path": "videos/a.mp4"})

    assert response.status_code == 500
    assert response.json()["error"] == "Missing required configuration"


async def test_signed_url_missing_path_is_404_when_not_configured(client):
    app.state.url_signer = None

    response = await client.get("/signed-url")

    assert response.status_code == 404
