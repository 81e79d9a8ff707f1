"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from s3proxy.config import Settings
from s3proxy.main import create_app

from .fakes import FakeS3Client

REAL_BUCKET = "real-bucket"

@pytest.fixture
def fake_s3():
    """In-memory S3 client with one existing, empty bucket."""
    return FakeS3Client(buckets=[REAL_BUCKET])

@pytest.fixture
def settings():
    return Settings(_env_file=None, readiness_buckets=REAL_BUCKET, readiness_timeout=2.0)

@pytest.fixture
def client(fake_s3, settings):
    """Test client for the proxy backed by fake_s3."""
    with TestClient(create_app(settings, client=fake_s3)) as test_client:
        yield test_client
