"""Tests for dependency mismatch analysis."""

import pytest

from cigraph.deps import compute_dependency_mismatches, recompute_dependency_mismatches
from cigraph.store.base import GraphStore

UID = "ts::src.app.main::nosig"


def _declared(pkg: str, manifest_key: str = "package.json::abc", **extra: object) -> dict:
    return {"manifest_key": manifest_key, "package_key": pkg, **extra}


def _observed(pkg: str, **extra: object) -> dict:
    return {"source_symbol_uid": UID, "package_key": pkg, **extra}


class TestComputeDependencyMismatches:
    """Pure derivation from declared and observed sets."""

    def test_given_unused_declaration_when_computed_then_declared_not_observed(self) -> None:
        result = compute_dependency_mismatches(
            [_declared("npm:lodash", scope="prod", version_range="^4.0.0")], [], sha="abc"
        )

        assert result == [
            {
                "mismatch_type": "declared_not_observed",
                "package_key": "npm:lodash",
                "details": {
                    "declared_in_files": ["package.json"],
                    "scopes": ["prod"],
                    "version_ranges": ["^4.0.0"],
                },
                "sha": "abc",
            }
        ]

    def test_given_undeclared_import_when_computed_then_observed_not_declared(self) -> None:
        observed = [
            _observed("npm:axios", file_path="src/b.ts"),
            _observed("npm:axios", evidence={"file_path": "src/a.ts"}),
        ]

        result = compute_dependency_mismatches([], observed)

        assert len(result) == 1
        assert result[0]["mismatch_type"] == "observed_not_declared"
        assert result[0]["details"] == {"observed_in_files": ["src/a.ts", "src/b.ts"]}
        assert result[0]["sha"] == "unknown"

    def test_given_two_version_ranges_when_computed_then_version_conflict(self) -> None:
        declared = [
            _declared("npm:react", "web/package.json::abc", version_range="^17.0.0"),
            _declared("npm:react", "app/package.json::abc", version_range="^18.2.0"),
        ]

        result = compute_dependency_mismatches(declared, [_observed("npm:react")])

        assert [m["mismatch_type"] for m in result] == ["version_conflict"]
        assert result[0]["details"] == {
            "version_ranges": ["^17.0.0", "^18.2.0"],
            "manifests": ["app/package.json::abc", "web/package.json::abc"],
        }

    def test_given_missing_range_and_star_when_computed_then_no_conflict(self) -> None:
        declared = [_declared("npm:x"), _declared("npm:x", version_range="*")]

        result = compute_dependency_mismatches(declared, [_observed("npm:x")])

        assert result == []

    def test_given_matching_facts_when_computed_then_no_mismatches(self) -> None:
        result = compute_dependency_mismatches([_declared("npm:x")], [_observed("npm:x")])

        assert result == []

    def test_given_records_without_package_key_when_computed_then_ignored(self) -> None:
        assert compute_dependency_mismatches([{"manifest_key": "a::b"}], [{"file_path": "x"}]) == []

    def test_given_mixed_results_when_computed_then_sorted_by_type_and_package(self) -> None:
        declared = [_declared("npm:z"), _declared("npm:a")]
        observed = [_observed("npm:m")]

        result = compute_dependency_mismatches(declared, observed)

        assert [(m["mismatch_type"], m["package_key"]) for m in result] == [
            ("declared_not_observed", "npm:a"),
            ("declared_not_observed", "npm:z"),
            ("observed_not_declared", "npm:m"),
        ]


class TestRecomputeDependencyMismatches:
    """Store-backed recomputation."""

    @pytest.mark.asyncio
    async def test_given_stored_facts_when_recomputed_then_replaced_with_manifest_sha(
        self, store: GraphStore, scope: dict[str, str]
    ) -> None:
        await store.add_dependency_manifest(
            **scope, manifest={"file_path": "package.json", "sha": "s9"}
        )
        await store.add_declared_dependency(**scope, declared=_declared("npm:lodash"))
        await store.add_dependency_mismatch(
            **scope, mismatch={"mismatch_type": "version_conflict", "package_key": "npm:stale"}
        )

        result = await recompute_dependency_mismatches(store, **scope)

        stored = await store.list_dependency_mismatches(**scope)
        assert stored == result
        assert [(m["mismatch_type"], m["package_key"], m["sha"]) for m in stored] == [
            ("declared_not_observed", "npm:lodash", "s9")
        ]

    @pytest.mark.asyncio
    async def test_given_explicit_sha_when_recomputed_then_used(
        self, store: GraphStore, scope: dict[str, str]
    ) -> None:
        await store.add_observed_dependency(**scope, observed=_observed("npm:left-pad"))

        result = await recompute_dependency_mismatches(store, **scope, sha="deadbeef")

        assert result[0]["sha"] == "deadbeef"

    @pytest.mark.asyncio
    async def test_given_unchanged_facts_when_recomputed_twice_then_same_set(
        self, store: GraphStore, scope: dict[str, str]
    ) -> None:
        await store.add_declared_dependency(**scope, declared=_declared("npm:a"))
        await store.add_observed_dependency(**scope, observed=_observed("npm:b"))

        first = await recompute_dependency_mismatches(store, **scope)
        second = await recompute_dependency_mismatches(store, **scope)

        assert first == second
        assert await store.list_dependency_mismatches(**scope) == second
