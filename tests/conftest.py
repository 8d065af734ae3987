"""
Pytest fixtures for page audit tests.
"""

from typing import AsyncGenerator, Dict, List

import pytest
import pytest_asyncio

from pageaudit.engines.audit.registry import AuditRegistry
from pageaudit.kernel.context import AuditContext
from pageaudit.plugins.audits import create_default_registry
from pageaudit.schemas.audit import GatherMode
from pageaudit.schemas.run import RunSettings


@pytest.fixture
def run_settings() -> RunSettings:
    """Default navigation run settings."""
    return RunSettings(gather_mode=GatherMode.NAVIGATION)


@pytest_asyncio.fixture
async def audit_context(run_settings: RunSettings) -> AsyncGenerator[AuditContext, None]:
    """A fresh run context, closed after the test."""
    context = AuditContext.create(run_settings)
    yield context
    context.close()


@pytest.fixture
def registry() -> AuditRegistry:
    """Registry with every built-in audit."""
    return create_default_registry()


# Sample artifact fixtures

@pytest.fixture
def sample_url() -> Dict[str, str]:
    """A page requested over http that redirected once to https."""
    return {
        "requested_url": "http://example.com/",
        "main_document_url": "https://example.com/",
        "final_displayed_url": "https://example.com/",
    }


@pytest.fixture
def sample_network_records() -> List[dict]:
    """One redirect hop, the main document, and two subresources."""
    return [
        {
            "request_id": "1",
            "url": "http://example.com/",
            "resource_type": "Document",
            "status_code": 301,
            "network_request_time": 0.0,
            "response_headers_end_time": 120.0,
            "network_end_time": 125.0,
            "transfer_size": 300,
            "redirect_destination": "https://example.com/",
        },
        {
            "request_id": "1:redirect",
            "url": "https://example.com/",
            "resource_type": "Document",
            "status_code": 200,
            "network_request_time": 250.0,
            "response_headers_end_time": 1050.0,
            "network_end_time": 1200.0,
            "transfer_size": 14_000,
        },
        {
            "request_id": "2",
            "url": "https://example.com/app.js",
            "resource_type": "Script",
            "status_code": 200,
            "network_request_time": 1300.0,
            "response_headers_end_time": 1350.0,
            "network_end_time": 1500.0,
            "transfer_size": 52_000,
        },
        {
            "request_id": "3",
            "url": "https://example.com/style.css",
            "resource_type": "Stylesheet",
            "status_code": 200,
            "network_request_time": 1310.0,
            "response_headers_end_time": 1340.0,
            "network_end_time": 1400.0,
            "transfer_size": 8_000,
        },
    ]


@pytest.fixture
def sample_dom_stats() -> dict:
    """A DOM comfortably under the p10 control point."""
    return {
        "total_body_elements": 400,
        "depth": {"max": 12},
        "width": {"max": 30},
    }


@pytest.fixture
def sample_artifacts(
    sample_url: Dict[str, str],
    sample_network_records: List[dict],
    sample_dom_stats: dict,
) -> dict:
    """Artifacts for a full run of the built-in audits."""
    return {
        "URL": sample_url,
        "NetworkRecords": sample_network_records,
        "DOMStats": sample_dom_stats,
        "Title": "Example Domain",
    }
