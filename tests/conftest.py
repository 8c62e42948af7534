"""
Shared fixtures for the posts service tests.

- An in-memory stand-in for a motor collection (only the calls PostRepository makes)
- A throwaway RSA key for CloudFront signing
- An httpx AsyncClient bound to the FastAPI app with all handles injected
"""

from __future__ import annotations

import copy
import os
import tempfile
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

os.environ.setdefault("LOG_DIR", tempfile.gettempdir())
os.environ.setdefault("STORAGE_TYPE", "local")

import pytest
import pytest_asyncio
from bson import ObjectId
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from pymongo import ReturnDocument

from app.main import app
from app.services.cdn_signer import CloudFrontUrlSigner
from app.services.lambda_client import LambdaInvoker
from app.services.post_repository import PostRepository, get_post_repository
from app.services.storage import LocalDiskStorage, UploadRouter

CDN_DOMAIN = "d111111abcdef8.cloudfront.net"
KEY_PAIR_ID = "K2JCJMDEHXQW5F"


# =============================================================================
# IN-MEMORY COLLECTION
# =============================================================================


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    async def to_list(self, length: Optional[int]):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    """Minimal async collection keyed by _id, insertion ordered."""

    def __init__(self):
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}
        self.calls: List[str] = []

    def _match(self, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.docs.get(filter.get("_id"))

    async def insert_one(self, doc):
        self.calls.append("insert_one")
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, filter):
        self.calls.append("find")
        return FakeCursor([copy.deepcopy(d) for d in self.docs.values()])

    async def find_one(self, filter):
        self.calls.append("find_one")
        doc = self._match(filter)
        return copy.deepcopy(doc) if doc else None

    async def find_one_and_update(self, filter, update, return_document=ReturnDocument.BEFORE):
        self.calls.append("find_one_and_update")
        doc = self._match(filter)
        if doc is None:
            return None
        before = copy.deepcopy(doc)
        doc.update(update.get("$set", {}))
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    async def find_one_and_delete(self, filter):
        self.calls.append("find_one_and_delete")
        doc = self._match(filter)
        if doc is None:
            return None
        return self.docs.pop(doc["_id"])


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def repo(collection) -> PostRepository:
    return PostRepository(collection)


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_file(rsa_key, tmp_path_factory):
    path = tmp_path_factory.mktemp("keys") / "private_key.pem"
    path.write_bytes(
        rsa_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return str(path)


@pytest.fixture
def signer(private_key_file) -> CloudFrontUrlSigner:
    return CloudFrontUrlSigner.from_key_file(private_key_file, KEY_PAIR_ID, CDN_DOMAIN)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def lambda_client():
    """Mock aioboto3 lambda client; configure `invoke.return_value` per test."""
    client = Mock()
    client.invoke = AsyncMock()
    return client


def lambda_response(body: bytes, function_error: Optional[str] = None) -> Dict[str, Any]:
    payload = Mock()
    payload.read = AsyncMock(return_value=body)
    response = {"StatusCode": 200, "Payload": payload}
    if function_error:
        response["FunctionError"] = function_error
    return response


@pytest.fixture
def make_lambda_response():
    return lambda_response


@pytest_asyncio.fixture
async def client(repo, upload_dir, lambda_client, signer):
    """AsyncClient against the app with every process-wide handle swapped for a test one."""
    app.dependency_overrides[get_post_repository] = lambda: repo
    app.state.upload_router = UploadRouter(LocalDiskStorage(str(upload_dir)), max_size=1_000_000)
    app.state.lambda_invoker = LambdaInvoker(lambda_client, "price-calculator")
    app.state.url_signer = signer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
