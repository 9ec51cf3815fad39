"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime

import pytest

from cost_dashboard.clients.storage import InMemoryStore
from cost_dashboard.models import NormalizedRecord
from cost_dashboard.services.filter_service import FilterService
from cost_dashboard.services.filter_storage_service import FilterStorageService


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_env(monkeypatch):
    """Set up test environment variables."""
    test_vars = {
        "AWS_REGION": "us-east-1",
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "FILTER_STORAGE_BACKEND": "memory",
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    return test_vars


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def memory_store():
    """Create an empty in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def filter_storage(memory_store):
    """Create a filter storage service over the in-memory store."""
    return FilterStorageService(store=memory_store)


@pytest.fixture
def fixed_now():
    """A fixed point in time for timestamp assertions."""
    return datetime(2025, 3, 1, 12, 30, 0, tzinfo=UTC)


@pytest.fixture
def filter_service(filter_storage, fixed_now):
    """Create a filter service with default state and a frozen clock."""
    return FilterService(filter_storage, clock=lambda: fixed_now)


# =============================================================================
# Test Data Fixtures
# =============================================================================

@pytest.fixture
def sample_records():
    """Provide the three-record attribution scenario."""
    return [
        NormalizedRecord(id="i-a", team="A", region="us-east-1", cost=10.0),
        NormalizedRecord(id="i-b", team="B", region="us-east-1", cost=20.0),
        NormalizedRecord(id="i-c", region="us-east-1", cost=5.0),
    ]


@pytest.fixture
def sample_instances():
    """Provide normalized EC2 instances covering every filter dimension."""
    return [
        NormalizedRecord(
            id="i-001",
            name="genomics-gpu",
            team="Chen Lab",
            project="Genomics",
            environment="production",
            instance_type="p3.2xlarge",
            region="us-east-1",
            state="running",
            waste_level="high",
            job_id="job-1",
            cost=2203.2,
        ),
        NormalizedRecord(
            id="i-002",
            name="rodriguez-db",
            team="Rodriguez Lab",
            instance_type="r5.large",
            region="us-west-2",
            state="stopped",
            waste_level="low",
            cost=90.72,
        ),
        NormalizedRecord(
            id="i-003",
            name="scratch",
            instance_type="t2.micro",
            region="us-east-1",
            state="running",
            waste_level="medium",
            job_id="job-2",
            cost=8.35,
        ),
    ]


@pytest.fixture
def sample_tagging_api_resources():
    """Provide raw Resource Groups Tagging API mappings."""
    return [
        {
            "ResourceARN": "arn:aws:ec2:us-east-1:123456789012:instance/i-0aaa",
            "Tags": [
                {"Key": "Team", "Value": "Chen Lab"},
                {"Key": "Environment", "Value": "production"},
            ],
        },
        {
            "ResourceARN": "arn:aws:ec2:us-west-2:123456789012:instance/i-0bbb",
            "Tags": [{"Key": "Application", "Value": "Pipeline"}],
        },
        {
            "ResourceARN": "arn:aws:ec2:eu-west-1:123456789012:instance/i-0ccc",
            "Tags": [{"Key": "Name", "Value": "untagged-box"}],
        },
    ]


# =============================================================================
# Pytest Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks tests as property-based tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)
