"""Similarity clustering of fingerprinted links.

The default strategy is a greedy single pass over the links in load order:
the first remaining link becomes a head and takes every remaining link whose
similarity to it is strictly above the threshold. Taken links leave the pool
for good, so they can never head a group or join another one. The result is
a partition of the hashed links, but not a transitive one: two links that are
both close to a third can land in different groups depending on scan order.

Worst case is O(n^2) similarity calls, which is fine for a few thousand links.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Mapping

from imgcluster.core.hasher import fingerprint_similarity
from imgcluster.models.config import ClusterConfig, ClusterMode
from imgcluster.models.fingerprint import Cluster, FingerprintTable

SimilarityFn = Callable[[str, str], float]

DEFAULT_THRESHOLD = 0.90


def present_fingerprints(table: FingerprintTable) -> dict[str, str]:
    """Drop links without a fingerprint, keeping load order."""
    return {link: fp for link, fp in table.items() if fp is not None}


def cluster_greedy(
    fingerprints: Mapping[str, str],
    threshold: float = DEFAULT_THRESHOLD,
    similarity: SimilarityFn = fingerprint_similarity,
) -> list[Cluster]:
    """Greedy, order-dependent partition. Returns every group, empty ones included."""
    remaining = list(fingerprints.items())
    groups: list[Cluster] = []

    while remaining:
        head_link, head_fp = remaining[0]
        similar: list[str] = []
        rest: list[tuple[str, str]] = []
        for link, fp in remaining[1:]:
            if similarity(head_fp, fp) > threshold:
                similar.append(link)
            else:
                rest.append((link, fp))
        groups.append(Cluster(head=head_link, members=similar))
        remaining = rest

    return groups


def cluster_transitive(
    fingerprints: Mapping[str, str],
    threshold: float = DEFAULT_THRESHOLD,
    similarity: SimilarityFn = fingerprint_similarity,
) -> list[Cluster]:
    """Connected components of the above-threshold similarity graph.

    Head is the earliest link of each component; members follow in load order.
    """
    items = list(fingerprints.items())
    parent: dict[int, int] = {}

    def find(x: int) -> int:
        while parent.get(x, x) != x:
            parent[x] = parent.get(parent[x], parent[x])
            x = parent[x]
        return x

    def union(a: int, b: int) -> None:
        ra, rb = find(a), find(b)
        if ra != rb:
            # the smaller index stays root so the earliest link heads the group
            parent[max(ra, rb)] = min(ra, rb)

    for i in range(len(items)):
        for j in range(i + 1, len(items)):
            if similarity(items[i][1], items[j][1]) > threshold:
                union(i, j)

    components: dict[int, list[int]] = defaultdict(list)
    for idx in range(len(items)):
        components[find(idx)].append(idx)

    return [
        Cluster(head=items[root][0], members=[items[idx][0] for idx in indices[1:]])
        for root, indices in sorted(components.items())
    ]


def find_clusters(
    table: FingerprintTable,
    config: ClusterConfig | None = None,
    similarity: SimilarityFn = fingerprint_similarity,
) -> list[Cluster]:
    """Cluster the hashed links of *table*; only groups with members are returned."""
    config = config or ClusterConfig()
    fingerprints = present_fingerprints(table)

    if config.cluster_mode == ClusterMode.TRANSITIVE:
        groups = cluster_transitive(fingerprints, config.similarity_threshold, similarity)
    else:
        groups = cluster_greedy(fingerprints, config.similarity_threshold, similarity)

    return [g for g in groups if g.members]
