"""Tests for name-based reconciliation."""

import pytest

from seed_sync.file_sync.reconciler import Plan, ReconciliationPolicy, reconcile


class TestUpdateOnly:
    """Test the update policy."""

    def test_disjoint_sets(self):
        """Disjoint sets delete everything stored and upload everything local."""
        plan = reconcile({"a.png", "b.png"}, {"c.png", "d.png"}, ReconciliationPolicy.UPDATE_ONLY)

        assert plan.to_delete == ("a.png", "b.png")
        assert plan.to_upload == ("c.png", "d.png")

    def test_equal_sets_are_a_no_op(self):
        """Identical name sets produce an empty plan."""
        names = {"a.png", "b.png", "c.png"}
        plan = reconcile(names, set(names), ReconciliationPolicy.UPDATE_ONLY)

        assert plan == Plan()
        assert plan.is_empty

    def test_overlapping_sets(self):
        """Only the differences are acted on."""
        plan = reconcile({"a.png", "b.png"}, {"b.png", "c.png"}, ReconciliationPolicy.UPDATE_ONLY)

        assert plan.to_delete == ("a.png",)
        assert plan.to_upload == ("c.png",)

    def test_delete_and_upload_are_disjoint(self):
        """A name never needs both deletion and upload."""
        plan = reconcile({"a", "b", "c", "x"}, {"b", "x", "y", "z"}, ReconciliationPolicy.UPDATE_ONLY)

        assert not set(plan.to_delete) & set(plan.to_upload)

    def test_output_is_sorted(self):
        """Plans list names in sorted order."""
        plan = reconcile(["z", "m", "a"], ["y", "b"], ReconciliationPolicy.UPDATE_ONLY)

        assert plan.to_delete == ("a", "m", "z")
        assert plan.to_upload == ("b", "y")

    def test_empty_store(self):
        """Everything local is uploaded into an empty store."""
        plan = reconcile(set(), {"x.jpg"}, ReconciliationPolicy.UPDATE_ONLY)

        assert plan.to_delete == ()
        assert plan.to_upload == ("x.jpg",)


class TestAlwaysUpload:
    """Test the always policy."""

    @pytest.mark.parametrize("stored", [set(), {"a.png"}, {"a.png", "old.png"}])
    def test_uploads_every_local_file(self, stored):
        """Every local file is uploaded and nothing is deleted."""
        plan = reconcile(stored, {"a.png", "b.png"}, ReconciliationPolicy.ALWAYS_UPLOAD)

        assert plan.to_upload == ("a.png", "b.png")
        assert plan.to_delete == ()


class TestNoUpload:
    """Test the none policy."""

    @pytest.mark.parametrize("stored, local", [
        (set(), set()),
        ({"a"}, set()),
        (set(), {"a"}),
        ({"a", "b"}, {"b", "c"}),
    ])
    def test_always_empty(self, stored, local):
        """The none policy never plans any action."""
        assert reconcile(stored, local, ReconciliationPolicy.NO_UPLOAD) == Plan()


class TestPolicyValues:
    """Test policy spelling used in configuration."""

    def test_policy_from_config_string(self):
        """Policies are looked up by their configuration spelling."""
        assert ReconciliationPolicy("always") is ReconciliationPolicy.ALWAYS_UPLOAD
        assert ReconciliationPolicy("update") is ReconciliationPolicy.UPDATE_ONLY
        assert ReconciliationPolicy("none") is ReconciliationPolicy.NO_UPLOAD

    def test_unknown_policy(self):
        """Unknown spellings are rejected."""
        with pytest.raises(ValueError):
            ReconciliationPolicy("sometimes")
