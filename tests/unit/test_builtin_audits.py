"""Unit tests for the built-in audits and the registry."""

import pytest

from pageaudit.engines.audit.executor import AuditExecutor
from pageaudit.engines.audit.registry import AuditDefinition, AuditRegistry, filter_definitions
from pageaudit.engines.computed import MainResource, RedirectChain
from pageaudit.kernel.errors import UnknownAuditError
from pageaudit.plugins.audits import (
    BUILTIN_AUDITS,
    DocumentTitleAudit,
    DomSizeAudit,
    NetworkRequestsAudit,
    RedirectsAudit,
    ServerResponseTimeAudit,
)
from pageaudit.schemas.audit import GatherMode, NumericUnit, ScoreDisplayMode
from pageaudit.schemas.run import AuditSelection, RunSettings


async def _run(audit, context, artifacts, options=None):
    return await AuditExecutor.run(AuditDefinition(audit, options or {}), context, artifacts)


class TestRegistry:
    """Tests for AuditRegistry."""

    def test_default_registry_order(self, registry):
        assert registry.ids() == [cls.meta.id for cls in BUILTIN_AUDITS]
        assert len(registry) == len(BUILTIN_AUDITS)

    def test_duplicate_registration_rejected(self):
        registry = AuditRegistry([DomSizeAudit])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(DomSizeAudit())

    def test_object_without_meta_rejected(self):
        with pytest.raises(TypeError):
            AuditRegistry().register(object())

    def test_unknown_audit(self, registry):
        with pytest.raises(UnknownAuditError):
            registry.get("no-such-audit")
        with pytest.raises(UnknownAuditError):
            registry.definitions([AuditSelection(id="no-such-audit")])

    def test_selection_order_and_options(self, registry):
        definitions = registry.definitions([
            AuditSelection(id="dom-size", options={"median": 2000}),
            AuditSelection(id="document-title"),
        ])

        assert [d.id for d in definitions] == ["dom-size", "document-title"]
        assert definitions[0].merged_options() == {"p10": 818, "median": 2000}

    def test_filter_by_gather_mode(self, registry):
        snapshot = RunSettings(gather_mode=GatherMode.SNAPSHOT)
        ids = [d.id for d in filter_definitions(registry.definitions(), snapshot)]

        assert ids == ["document-title", "dom-size", "network-requests"]

    def test_filter_only_and_skip(self, registry):
        settings = RunSettings(
            only_audits=("dom-size", "redirects", "document-title"),
            skip_audits=("redirects",),
        )
        ids = [d.id for d in filter_definitions(registry.definitions(), settings)]

        assert ids == ["document-title", "dom-size"]


class TestDocumentTitleAudit:

    @pytest.mark.asyncio
    async def test_has_title(self, audit_context):
        result = await _run(DocumentTitleAudit(), audit_context, {"Title": "Example Domain"})
        assert result.score == 1
        assert result.title == DocumentTitleAudit.meta.title

    @pytest.mark.asyncio
    async def test_blank_title(self, audit_context):
        result = await _run(DocumentTitleAudit(), audit_context, {"Title": "   "})
        assert result.score == 0
        assert result.title == DocumentTitleAudit.meta.failure_title


class TestDomSizeAudit:

    @pytest.mark.asyncio
    async def test_small_dom_passes(self, audit_context, sample_dom_stats):
        result = await _run(DomSizeAudit(), audit_context, {"DOMStats": sample_dom_stats})

        assert result.score_display_mode == ScoreDisplayMode.NUMERIC
        assert result.score == 1.0
        assert result.numeric_value == 400
        assert result.numeric_unit == NumericUnit.ELEMENT
        assert result.details["items"][1] == {"statistic": "Maximum DOM Depth", "value": 12}

    @pytest.mark.asyncio
    async def test_median_dom_scores_half(self, audit_context):
        result = await _run(DomSizeAudit(), audit_context, {"DOMStats": {"total_body_elements": 1400}})
        assert result.score == pytest.approx(0.5, abs=0.01)

    @pytest.mark.asyncio
    async def test_options_override_curve(self, audit_context):
        result = await _run(
            DomSizeAudit(),
            audit_context,
            {"DOMStats": {"total_body_elements": 1400}},
            {"p10": 1400, "median": 3000},
        )
        assert result.score == pytest.approx(0.9, abs=0.011)


class TestNetworkAudits:
    """Audits built on the MainResource and RedirectChain computed artifacts."""

    @pytest.mark.asyncio
    async def test_server_response_time(self, audit_context, sample_url, sample_network_records):
        artifacts = {"URL": sample_url, "NetworkRecords": sample_network_records}
        result = await _run(ServerResponseTimeAudit(), audit_context, artifacts)

        assert result.score_display_mode == ScoreDisplayMode.METRIC_SAVINGS
        assert result.numeric_value == 800
        assert result.score == 0.0
        assert result.metric_savings.LCP == 700
        assert result.title == ServerResponseTimeAudit.meta.failure_title

    @pytest.mark.asyncio
    async def test_fast_server_passes(self, audit_context, sample_url, sample_network_records):
        artifacts = {"URL": sample_url, "NetworkRecords": sample_network_records}
        result = await _run(
            ServerResponseTimeAudit(), audit_context, artifacts, {"too_slow_threshold_ms": 1000},
        )
        assert result.score == 1.0

    @pytest.mark.asyncio
    async def test_redirects(self, audit_context, sample_url, sample_network_records):
        artifacts = {"URL": sample_url, "NetworkRecords": sample_network_records}
        result = await _run(RedirectsAudit(), audit_context, artifacts)

        assert result.score == 0.0
        assert result.numeric_value == 250
        assert [item["url"] for item in result.details["items"]] == [
            "http://example.com/",
            "https://example.com/",
        ]

    @pytest.mark.asyncio
    async def test_no_redirects(self, audit_context, sample_network_records):
        url = {"requested_url": "https://example.com/", "main_document_url": "https://example.com/"}
        artifacts = {"URL": url, "NetworkRecords": sample_network_records}
        result = await _run(RedirectsAudit(), audit_context, artifacts)

        assert result.score == 1.0
        assert result.numeric_value == 0

    @pytest.mark.asyncio
    async def test_redirect_chain_reuses_main_resource(
        self, audit_context, sample_url, sample_network_records,
    ):
        """RedirectChain requests MainResource through the same cache."""
        dependencies = {"URL": sample_url, "NetworkRecords": sample_network_records}

        chain = await RedirectChain.request(dependencies, audit_context)
        main = await MainResource.request(dependencies, audit_context)

        assert chain[-1] == main
        assert audit_context.computed_cache.entry_count("MainResource") == 1

    @pytest.mark.asyncio
    async def test_main_resource_not_found(self, audit_context, sample_network_records):
        url = {"requested_url": "https://other.test/", "main_document_url": "https://other.test/"}
        artifacts = {"URL": url, "NetworkRecords": sample_network_records}
        result = await _run(ServerResponseTimeAudit(), audit_context, artifacts)

        assert result.is_error
        assert result.error_message == "Unable to identify the main resource"

    @pytest.mark.asyncio
    async def test_network_requests(self, audit_context, sample_network_records):
        result = await _run(
            NetworkRequestsAudit(), audit_context, {"NetworkRecords": sample_network_records},
        )

        assert result.score is None
        assert result.score_display_mode == ScoreDisplayMode.INFORMATIVE
        assert len(result.details["items"]) == 4
        assert result.details["items"][0]["start_time"] == 0
        assert result.details["sorted_by"] == ["start_time"]

    @pytest.mark.asyncio
    async def test_network_requests_empty(self, audit_context):
        result = await _run(NetworkRequestsAudit(), audit_context, {"NetworkRecords": []})
        assert result.is_not_applicable
