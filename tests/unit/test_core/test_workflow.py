"""
Unit tests for archhub.core.workflow.

Tests the persist decision contract: lock gating, conflict refusal, version
writes, feature review gating, auto-fix application and lock claims.
"""

from datetime import timedelta

import pytest

import archhub.core.store as store_module
from archhub.core.spec.models import FeatureStatus
from archhub.core.store import FileProjectStore
from archhub.core.workflow import (
    apply_autofix,
    apply_change,
    claim_project_lock,
    preview_change,
    propose_feature,
    release_project_lock,
    review_feature,
)

PRODUCT = {"id": "ent-product", "name": "Product", "fields": [{"name": "id", "type": "String"}]}
ADD_PRODUCT = {"summary": "Add products", "operations": [{"type": "addEntity", "entity": PRODUCT}]}
BRAVO = {"id": "ent-bravo", "name": "Bravo", "fields": [{"name": "id", "type": "String"}]}
ADD_BRAVO = {"summary": "Add bravo", "operations": [{"type": "addEntity", "entity": BRAVO}]}
ADD_DUPLICATE = {
    "summary": "Duplicate user",
    "operations": [
        {"type": "addEntity", "entity": {"id": "dup", "name": "User", "fields": []}},
        {"type": "addEntity", "entity": PRODUCT},
    ],
}


@pytest.fixture
def project(store, base_spec, fixed_now):
    return store.create_project("shop", name="Shop", spec=base_spec, now=fixed_now)


class TestPreviewChange:
    """Tests for preview_change."""

    def test_preview_payload(self, store, project, base_spec):
        response = preview_change(store, "shop", ADD_PRODUCT)
        assert response.success is True
        assert set(response.data) == {"preview", "summary", "impactedFiles", "project_id"}
        assert response.data["summary"]["newEntities"] == ["Product"]
        assert response.data["impactedFiles"] == ["prisma/schema.prisma", "src/entities/Product.ts"]
        assert store.load_project("shop").spec == base_spec

    def test_preview_reports_conflicts_as_data(self, store, project):
        response = preview_change(store, "shop", ADD_DUPLICATE)
        assert response.success is True
        assert response.data["summary"]["conflictCount"] == 1

    def test_preview_missing_project(self, store):
        response = preview_change(store, "ghost", ADD_PRODUCT)
        assert response.success is False
        assert response.data["error_code"] == "NOT_FOUND"


class TestApplyChange:
    """Tests for apply_change."""

    def test_apply_persists_new_version(self, store, project, fixed_now):
        response = apply_change(store, "shop", ADD_PRODUCT, "alice", now=fixed_now)
        assert response.success is True
        assert response.data["version"] == 1
        assert response.data["persisted"] is True
        assert response.data["summary"]["newEntities"] == ["Product"]

        saved = store.load_project("shop", now=fixed_now)
        assert [e["name"] for e in saved.spec["entities"]] == ["User", "Order", "Product"]
        version = store.get_version("shop", 1)
        assert version.created_by == "alice"
        assert version.diff["entities"][-1] == ["+", PRODUCT]

    def test_versions_increment(self, store, project, fixed_now):
        apply_change(store, "shop", ADD_PRODUCT, "alice", now=fixed_now)
        rename = {
            "summary": "rename",
            "operations": [{"type": "updateEntity", "entityId": "ent-product", "patch": {"name": "Item"}}],
        }
        response = apply_change(store, "shop", rename, "alice", now=fixed_now)
        assert response.data["version"] == 2

    def test_dry_run_does_not_persist(self, store, project, base_spec, fixed_now):
        response = apply_change(store, "shop", ADD_PRODUCT, "alice", persist=False, now=fixed_now)
        assert response.success is True
        assert response.data["version"] is None
        assert response.data["persisted"] is False
        assert store.load_project("shop", now=fixed_now).spec == base_spec
        assert store.list_versions("shop") == []

    def test_conflicts_refuse_persist(self, store, project, base_spec, fixed_now):
        """Any conflict refuses the whole request and lists every conflict."""
        response = apply_change(store, "shop", ADD_DUPLICATE, "alice", now=fixed_now)
        assert response.success is False
        assert response.data["error_code"] == "CONFLICT"
        assert response.data["conflicts"] == [
            {
                "type": "naming",
                "message": "Entity with name User already exists",
                "details": {"entityName": "User"},
            }
        ]
        assert "preview" in response.data
        assert store.load_project("shop", now=fixed_now).spec == base_spec
        assert store.list_versions("shop") == []

    def test_missing_project(self, store):
        response = apply_change(store, "ghost", ADD_PRODUCT, "alice")
        assert response.data["error_code"] == "NOT_FOUND"

    def test_missing_change_request(self, store, project):
        response = apply_change(store, "shop", None, "alice")
        assert response.success is False
        assert response.data["error_code"] == "MISSING_REQUIRED"


class TestApplyRaces:
    """Tests for applies that interleave with other writers."""

    def test_apply_refused_when_another_apply_lands_first(self, store, project, fixed_now, monkeypatch):
        original_save = store.save_spec
        interleaved = []

        def save_after_bob(*args, **kwargs):
            monkeypatch.setattr(store, "save_spec", original_save)
            interleaved.append(apply_change(store, "shop", ADD_BRAVO, "bob", now=fixed_now))
            return original_save(*args, **kwargs)

        monkeypatch.setattr(store, "save_spec", save_after_bob)
        response = apply_change(store, "shop", ADD_PRODUCT, "alice", now=fixed_now)

        assert interleaved[0].success is True
        assert interleaved[0].data["version"] == 1
        assert response.success is False
        assert response.data["error_code"] == "CONFLICT"
        assert response.data["expected_version"] == 0
        assert response.data["current_version"] == 1

        saved = store.load_project("shop", now=fixed_now)
        assert [e["name"] for e in saved.spec["entities"]] == ["User", "Order", "Bravo"]
        assert saved.current_version == 1
        assert [v.created_by for v in store.list_versions("shop")] == ["bob"]

    def test_apply_refused_when_lock_taken_after_check(self, store, project, fixed_now, monkeypatch):
        original_save = store.save_spec

        def save_after_lock_claim(*args, **kwargs):
            monkeypatch.setattr(store, "save_spec", original_save)
            claim_project_lock(store, "shop", "bob", now=fixed_now)
            return original_save(*args, **kwargs)

        monkeypatch.setattr(store, "save_spec", save_after_lock_claim)
        response = apply_change(store, "shop", ADD_PRODUCT, "alice", now=fixed_now)

        assert response.success is False
        assert response.data["error_code"] == "RESOURCE_BUSY"
        assert store.list_versions("shop") == []
        assert store.load_project("shop", now=fixed_now).current_version == 0


class TestApplyLockGating:
    """Persisted applies respect the project lock; previews do not."""

    def test_locked_by_other_user(self, store, project, base_spec, fixed_now):
        claim_project_lock(store, "shop", "alice", now=fixed_now)
        response = apply_change(store, "shop", ADD_PRODUCT, "bob", now=fixed_now + timedelta(minutes=1))
        assert response.success is False
        assert response.error == "Project locked by another collaborator"
        assert response.data["error_code"] == "RESOURCE_BUSY"
        assert response.data["locked_by"] == "alice"
        assert store.list_versions("shop") == []

    def test_holder_may_apply(self, store, project, fixed_now):
        claim_project_lock(store, "shop", "alice", now=fixed_now)
        response = apply_change(store, "shop", ADD_PRODUCT, "alice", now=fixed_now + timedelta(minutes=1))
        assert response.success is True

    def test_expired_lock_does_not_block(self, store, project, fixed_now):
        claim_project_lock(store, "shop", "alice", duration_minutes=5, now=fixed_now)
        response = apply_change(store, "shop", ADD_PRODUCT, "bob", now=fixed_now + timedelta(minutes=6))
        assert response.success is True

    def test_dry_run_ignores_lock(self, store, project, fixed_now):
        claim_project_lock(store, "shop", "alice", now=fixed_now)
        response = apply_change(store, "shop", ADD_PRODUCT, "bob", persist=False, now=fixed_now)
        assert response.success is True


class TestFeatureWorkflow:
    """Tests for propose, review and feature-gated apply."""

    def test_propose_stores_feature_in_review(self, store, project, fixed_now):
        response = propose_feature(store, "shop", "Products", ADD_PRODUCT, "alice", now=fixed_now)
        assert response.success is True
        feature = response.data["feature"]
        assert feature["status"] == "in_review"
        assert feature["changeRequest"] == ADD_PRODUCT
        assert feature["createdBy"] == "alice"
        assert feature["preview"]["conflicts"] == []
        assert response.data["summary"]["newEntities"] == ["Product"]
        assert store.load_feature("shop", feature["id"]).status == FeatureStatus.IN_REVIEW

    def test_unapproved_feature_cannot_be_applied(self, store, project, fixed_now):
        feature_id = propose_feature(store, "shop", "Products", ADD_PRODUCT, "alice", now=fixed_now).data["feature"]["id"]
        response = apply_change(store, "shop", None, "alice", feature_id=feature_id, now=fixed_now)
        assert response.success is False
        assert response.data["error_code"] == "CONFLICT"
        assert response.error == f"Feature '{feature_id}' must be approved before applying"

    def test_approved_feature_applies_and_advances(self, store, project, fixed_now):
        feature_id = propose_feature(
            store, "shop", "Products", ADD_PRODUCT, "alice", feature_id="feat-products", now=fixed_now
        ).data["feature"]["id"]
        assert feature_id == "feat-products"

        review = review_feature(store, "shop", feature_id, approve=True)
        assert review.data["feature"]["status"] == "approved"

        response = apply_change(store, "shop", None, "bob", feature_id=feature_id, now=fixed_now)
        assert response.success is True
        assert response.data["version"] == 1
        assert store.load_feature("shop", feature_id).status == FeatureStatus.APPLIED

    def test_missing_feature(self, store, project):
        response = apply_change(store, "shop", ADD_PRODUCT, "alice", feature_id="nope")
        assert response.data["error_code"] == "CONFLICT"
        assert response.error == "Feature 'nope' not found"

    def test_rejected_feature_cannot_be_reviewed_again(self, store, project, fixed_now):
        feature_id = propose_feature(store, "shop", "Products", ADD_PRODUCT, "alice", now=fixed_now).data["feature"]["id"]
        assert review_feature(store, "shop", feature_id, approve=False).data["feature"]["status"] == "rejected"

        response = review_feature(store, "shop", feature_id, approve=True)
        assert response.success is False
        assert response.data["error_code"] == "CONFLICT"
        assert "can no longer be reviewed" in response.error

    def test_review_missing_feature(self, store, project):
        response = review_feature(store, "shop", "nope", approve=True)
        assert response.data["error_code"] == "NOT_FOUND"


class TestApplyAutofix:
    """Tests for applying architecture suggestions."""

    def test_applies_crud_suggestion(self, store, project, fixed_now):
        response = apply_autofix(store, "shop", "add-crud-ent-order", "alice", now=fixed_now)
        assert response.success is True
        assert response.data["version"] == 1
        assert response.data["summary"]["newEndpoints"] == [
            "POST /orders",
            "GET /orders",
            "PATCH /orders/:id",
            "DELETE /orders/:id",
        ]

    def test_diff_depth_limit(self, store, project, fixed_now):
        response = apply_autofix(
            store, "shop", "add-crud-ent-order", "alice", persist=False, now=fixed_now, max_depth=1
        )
        assert response.success is True
        endpoints_diff = response.data["preview"]["diff"]["endpoints"]
        assert set(endpoints_diff) == {"__old", "__new"}
        assert len(endpoints_diff["__new"]) == 6

    def test_unknown_suggestion(self, store, project):
        response = apply_autofix(store, "shop", "add-crud-ghost", "alice")
        assert response.success is False
        assert response.data["error_code"] == "NOT_FOUND"


class TestProjectLockClaims:
    """Tests for claim_project_lock and release_project_lock."""

    def test_claim_and_release(self, store, project, fixed_now):
        claimed = claim_project_lock(store, "shop", "alice", now=fixed_now)
        assert claimed.success is True
        assert claimed.data["lock"]["lockedBy"] == "alice"

        released = release_project_lock(store, "shop", "alice", now=fixed_now)
        assert released.data["released"] is True
        assert store.load_project("shop", now=fixed_now).lock is None

    def test_claim_blocked_by_other_user(self, store, project, fixed_now):
        claim_project_lock(store, "shop", "alice", now=fixed_now)
        response = claim_project_lock(store, "shop", "bob", now=fixed_now)
        assert response.success is False
        assert response.data["error_code"] == "RESOURCE_BUSY"
        assert response.data["error_type"] == "locked"

    def test_holder_renews(self, store, project, fixed_now):
        claim_project_lock(store, "shop", "alice", now=fixed_now)
        later = fixed_now + timedelta(minutes=10)
        response = claim_project_lock(store, "shop", "alice", now=later)
        assert response.success is True
        assert store.load_project("shop", now=later).lock.expires_at == later + timedelta(minutes=15)

    def test_invalid_duration(self, store, project):
        response = claim_project_lock(store, "shop", "alice", duration_minutes=0)
        assert response.data["error_code"] == "VALIDATION_ERROR"

    def test_release_by_other_user_refused(self, store, project, fixed_now):
        claim_project_lock(store, "shop", "alice", now=fixed_now)
        response = release_project_lock(store, "shop", "bob", now=fixed_now)
        assert response.data["error_code"] == "RESOURCE_BUSY"
        assert store.load_project("shop", now=fixed_now).lock.locked_by == "alice"

    def test_release_without_lock(self, store, project):
        assert release_project_lock(store, "shop", "alice").data["released"] is False

    def test_invalid_project_id(self, store):
        response = claim_project_lock(store, "!!!", "alice")
        assert response.success is False
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert "!!!" in response.error
        assert "remediation" not in response.data

    def test_release_invalid_project_id(self, store):
        response = release_project_lock(store, "../", "alice")
        assert response.data["error_code"] == "VALIDATION_ERROR"

    def test_competing_claim_waits_for_the_first(self, tmp_path, base_spec, fixed_now, monkeypatch):
        store = FileProjectStore(tmp_path / "store", lock_timeout=0.1)
        store.create_project("shop", spec=base_spec, now=fixed_now)
        original_check = store_module.ensure_user_owns_lock
        competing = []

        def check_then_compete(*args, **kwargs):
            if not competing:
                competing.append(claim_project_lock(store, "shop", "bob", now=fixed_now))
            return original_check(*args, **kwargs)

        monkeypatch.setattr(store_module, "ensure_user_owns_lock", check_then_compete)
        response = claim_project_lock(store, "shop", "alice", now=fixed_now)

        assert response.success is True
        assert competing[0].success is False
        assert competing[0].data["error_code"] == "LOCK_TIMEOUT"
        assert store.load_project("shop", now=fixed_now).lock.locked_by == "alice"
