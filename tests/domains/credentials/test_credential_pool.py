"""
Tests for the credential pool manager.

Covers group resolution order, client initialization with rotation,
caching and the diagnostic summaries.
"""

from unittest.mock import MagicMock

import pytest

from jetai.domains.credentials import (
    GROUP_PREFERENCES,
    CredentialPoolManager,
    NoCredentialAvailable,
    ServiceCategory,
)


class TestPreferenceTable:
    """Tests for the static category -> group order table."""

    def test_every_category_has_an_order(self):
        """Test that all ten categories are covered."""
        assert set(GROUP_PREFERENCES) == set(ServiceCategory)
        assert len(GROUP_PREFERENCES) == 10

    def test_orders_are_permutations_of_all_groups(self):
        """Test that each order lists every group once."""
        for order in GROUP_PREFERENCES.values():
            assert sorted(order) == [1, 2, 3, 4, 5]

    def test_table_is_read_only(self):
        """Test that the table cannot be modified at runtime."""
        with pytest.raises(TypeError):
            GROUP_PREFERENCES[ServiceCategory.MAPPING] = (2, 1, 3, 4, 5)


class TestResolveCredential:
    """Tests for resolve_credential."""

    def test_returns_first_preferred_group_with_secret(self):
        """Mapping prefers 1, then 5: with group 1 empty, group 5 wins."""
        manager = CredentialPoolManager(groups={1: "", 2: "k2", 3: "k3", 4: "", 5: "k5"})

        credential = manager.resolve_credential(ServiceCategory.MAPPING)

        assert credential.group_id == 5
        assert credential.secret == "k5"

    def test_accepts_category_value_strings(self):
        """Test that plain string categories are accepted."""
        manager = CredentialPoolManager(groups={1: "", 2: "", 3: "", 4: "k4", 5: ""})

        assert manager.resolve_credential("model_generation").group_id == 4

    def test_scans_groups_outside_the_preference_list(self):
        """Test that an extra configured group is used as a last resort."""
        manager = CredentialPoolManager(groups={1: "", 2: "", 3: "", 4: "", 5: "", 6: "k6"})

        credential = manager.resolve_credential(ServiceCategory.TRANSLATION)

        assert credential.group_id == 6

    def test_raises_when_every_group_is_empty(self):
        """Test that an empty pool raises NoCredentialAvailable."""
        manager = CredentialPoolManager(groups={1: "", 2: "", 3: "", 4: "", 5: ""})

        with pytest.raises(NoCredentialAvailable) as exc_info:
            manager.resolve_credential(ServiceCategory.OBJECT_STORAGE)

        assert exc_info.value.category is ServiceCategory.OBJECT_STORAGE

    def test_secret_not_in_repr(self):
        """Test that credentials never print their secret."""
        manager = CredentialPoolManager(groups={1: "super-secret"})

        assert "super-secret" not in repr(manager.resolve_credential(ServiceCategory.MAPPING))


class TestInitializeClient:
    """Tests for initialize_client."""

    def test_rotates_past_failing_group(self):
        """Group 1 fails to build, group 2 succeeds and is recorded."""
        manager = CredentialPoolManager(groups={1: "bad", 2: "good", 3: "", 4: "", 5: ""})

        def build(secret: str) -> dict:
            if secret == "bad":
                raise ValueError("API key not valid")
            return {"key": secret}

        client = manager.initialize_client(ServiceCategory.MODEL_GENERATION, "gemini", build)

        assert client == {"key": "good"}
        status = manager.services_status()["gemini"]
        assert status.initialized is True
        assert status.assigned_group == 2
        assert status.last_error is None

    def test_skips_groups_without_secret(self):
        """Test that build_fn only sees non-empty secrets."""
        manager = CredentialPoolManager(groups={1: "", 2: "", 3: "k3", 4: "", 5: ""})
        build = MagicMock(return_value="client")

        manager.initialize_client(ServiceCategory.MAPPING, "maps", build)

        build.assert_called_once_with("k3")

    def test_returns_cached_client_without_rebuilding(self):
        """Test that a second call never calls build_fn again."""
        manager = CredentialPoolManager(groups={1: "k1"})
        build = MagicMock(return_value="client")

        first = manager.initialize_client(ServiceCategory.MAPPING, "maps", build)
        second = manager.initialize_client(ServiceCategory.MAPPING, "maps", build)

        assert first is second
        assert build.call_count == 1
        assert manager.get_service_client("maps") == "client"

    def test_returns_none_when_every_group_fails(self):
        """Test exhaustion: None, status not initialized, last error kept."""
        manager = CredentialPoolManager(groups={1: "a", 2: "b", 3: "c", 4: "d", 5: "e"})
        build = MagicMock(side_effect=RuntimeError("quota exceeded"))

        client = manager.initialize_client(ServiceCategory.VIDEO_ANALYSIS, "video", build)

        assert client is None
        assert build.call_count == 5
        status = manager.services_status()["video"]
        assert status.initialized is False
        assert status.assigned_group is None
        assert status.last_error == "quota exceeded"
        assert manager.get_service_client("video") is None

    def test_records_missing_credentials(self):
        """Test that an empty pool is reported in the status."""
        manager = CredentialPoolManager(groups={1: "", 2: "", 3: "", 4: "", 5: ""})

        client = manager.initialize_client(ServiceCategory.MAPPING, "maps", MagicMock())

        assert client is None
        assert "No credential available" in manager.services_status()["maps"].last_error

    def test_last_error_is_redacted(self):
        """Test that keys in error strings are masked."""
        manager = CredentialPoolManager(groups={1: "k1"})
        build = MagicMock(
            side_effect=RuntimeError("GET https://x.googleapis.com/v1?key=k1-secret failed")
        )

        manager.initialize_client(ServiceCategory.MAPPING, "maps", build)

        last_error = manager.services_status()["maps"].last_error
        assert "k1-secret" not in last_error
        assert "REDACTED" in last_error

    def test_retries_after_failed_initialization(self):
        """Test that a failed service can be initialized on a later call."""
        manager = CredentialPoolManager(groups={1: "k1"})
        build = MagicMock(side_effect=[RuntimeError("down"), "client"])

        assert manager.initialize_client(ServiceCategory.MAPPING, "maps", build) is None
        assert manager.initialize_client(ServiceCategory.MAPPING, "maps", build) == "client"
        assert manager.services_status()["maps"].assigned_group == 1


class TestAssignmentSummary:
    """Tests for the diagnostic summaries."""

    def test_summary_lists_group_or_failure(self):
        """Test both the success and the failure rendering."""
        manager = CredentialPoolManager(groups={1: "", 2: "k2", 3: "", 4: "", 5: ""})
        manager.initialize_client(ServiceCategory.PRODUCTIVITY_SUITE, "workspace", lambda s: object())
        manager.initialize_client(
            ServiceCategory.MAPPING,
            "maps",
            MagicMock(side_effect=RuntimeError("denied")),
        )

        summary = manager.assignment_summary()

        assert summary == {"workspace": "GROUP2", "maps": "failed: denied"}

    def test_render_mentions_agent_name(self):
        """Test the human-readable report."""
        manager = CredentialPoolManager(groups={1: "k1"})
        manager.initialize_client(ServiceCategory.MAPPING, "maps", lambda s: object())

        report = manager.render_assignment_summary("JetAI")

        assert report.splitlines()[0] == "JetAI service assignments:"
        assert "maps: GROUP1" in report

    def test_render_empty(self):
        """Test the report before any service is initialized."""
        report = CredentialPoolManager(groups={1: "k1"}).render_assignment_summary("JetAI")

        assert "no services initialized" in report
