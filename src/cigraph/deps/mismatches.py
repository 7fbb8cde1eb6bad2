"""Declared-vs-observed dependency mismatch analysis.

Three mismatch kinds are derived per package key:

- ``declared_not_observed``: in a manifest, never imported
- ``observed_not_declared``: imported, in no manifest
- ``version_conflict``: declared with more than one distinct version range
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from cigraph.graph.records import MismatchType, Record, file_path_from_manifest_key
from cigraph.store.base import GraphStore

log = structlog.get_logger()

UNKNOWN_SHA = "unknown"


@dataclass
class _Declared:
    ranges: set[str] = field(default_factory=set)
    scopes: set[str] = field(default_factory=set)
    manifests: set[str] = field(default_factory=set)
    files: set[str] = field(default_factory=set)


def _observed_file_path(observed: Record) -> str | None:
    path = observed.get("file_path")
    if isinstance(path, str) and path:
        return path
    evidence = observed.get("evidence")
    if isinstance(evidence, dict):
        path = evidence.get("file_path")
        if isinstance(path, str) and path:
            return path
    return None


def compute_dependency_mismatches(
    declared: Iterable[Record],
    observed: Iterable[Record],
    sha: str = UNKNOWN_SHA,
) -> list[Record]:
    """Derive mismatch records from the full declared and observed sets.

    Records without a ``package_key`` are ignored. Output is sorted by
    (mismatch_type, package_key) so equal inputs give equal outputs.
    """
    declared_by_pkg: dict[str, _Declared] = {}
    observed_by_pkg: dict[str, set[str]] = {}

    for d in declared:
        pkg = str(d.get("package_key") or "")
        if not pkg:
            continue
        entry = declared_by_pkg.setdefault(pkg, _Declared())
        entry.ranges.add(str(d.get("version_range") or "*"))
        entry.scopes.add(str(d.get("scope") or "unknown"))
        manifest_key = d.get("manifest_key")
        if manifest_key:
            entry.manifests.add(str(manifest_key))
            file_path = file_path_from_manifest_key(manifest_key)
            if file_path:
                entry.files.add(file_path)

    for o in observed:
        pkg = str(o.get("package_key") or "")
        if not pkg:
            continue
        files = observed_by_pkg.setdefault(pkg, set())
        file_path = _observed_file_path(o)
        if file_path:
            files.add(file_path)

    mismatches: list[Record] = []
    for pkg, entry in declared_by_pkg.items():
        if pkg not in observed_by_pkg:
            mismatches.append(
                {
                    "mismatch_type": MismatchType.DECLARED_NOT_OBSERVED.value,
                    "package_key": pkg,
                    "details": {
                        "declared_in_files": sorted(entry.files),
                        "scopes": sorted(entry.scopes),
                        "version_ranges": sorted(entry.ranges),
                    },
                    "sha": sha,
                }
            )
        if len(entry.ranges) > 1:
            mismatches.append(
                {
                    "mismatch_type": MismatchType.VERSION_CONFLICT.value,
                    "package_key": pkg,
                    "details": {
                        "version_ranges": sorted(entry.ranges),
                        "manifests": sorted(entry.manifests),
                    },
                    "sha": sha,
                }
            )
    for pkg, files in observed_by_pkg.items():
        if pkg not in declared_by_pkg:
            mismatches.append(
                {
                    "mismatch_type": MismatchType.OBSERVED_NOT_DECLARED.value,
                    "package_key": pkg,
                    "details": {"observed_in_files": sorted(files)},
                    "sha": sha,
                }
            )

    mismatches.sort(key=lambda m: (m["mismatch_type"], m["package_key"]))
    return mismatches


def _latest_manifest_sha(manifests: list[Record]) -> str:
    for manifest in reversed(manifests):
        sha = manifest.get("sha")
        if isinstance(sha, str) and sha:
            return sha
    return UNKNOWN_SHA


async def recompute_dependency_mismatches(
    store: GraphStore,
    *,
    tenant_id: str,
    repo_id: str,
    sha: str | None = None,
) -> list[Record]:
    """Re-derive mismatches for one scope and replace the stored set.

    When ``sha`` is omitted, the sha of the most recently stored manifest is
    used. Running this twice on unchanged facts stores the same set.
    """
    declared = await store.list_declared_dependencies(tenant_id=tenant_id, repo_id=repo_id)
    observed = await store.list_observed_dependencies(tenant_id=tenant_id, repo_id=repo_id)
    if sha is None:
        manifests = await store.list_dependency_manifests(tenant_id=tenant_id, repo_id=repo_id)
        sha = _latest_manifest_sha(manifests)

    mismatches = compute_dependency_mismatches(declared, observed, sha=sha)
    await store.replace_dependency_mismatches(
        tenant_id=tenant_id, repo_id=repo_id, mismatches=mismatches
    )
    log.info(
        "dependency_mismatches_recomputed",
        tenant_id=tenant_id,
        repo_id=repo_id,
        declared=len(declared),
        observed=len(observed),
        mismatches=len(mismatches),
    )
    return mismatches
