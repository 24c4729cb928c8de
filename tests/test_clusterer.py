"""Tests for greedy and transitive clustering."""

from __future__ import annotations

import random

from imgcluster.core.clusterer import (
    cluster_greedy,
    cluster_transitive,
    find_clusters,
    present_fingerprints,
)
from imgcluster.models.config import ClusterConfig, ClusterMode
from imgcluster.models.fingerprint import clusters_to_mapping


def exact_match(a: str, b: str) -> float:
    return 1.0 if a == b else 0.0


def table_similarity(scores: dict[frozenset[str], float]):
    def similarity(a: str, b: str) -> float:
        if a == b:
            return 1.0
        return scores[frozenset((a, b))]

    return similarity


def random_hex(rng: random.Random) -> str:
    return f"{rng.getrandbits(64):016x}"


class TestGreedy:
    def test_end_to_end_scenario(self) -> None:
        table = {"A": "h1", "B": "h1", "C": "h1", "D": "h2"}
        clusters = find_clusters(table, similarity=exact_match)
        assert clusters_to_mapping(clusters) == {"A": ["B", "C"]}

    def test_order_sensitivity_is_preserved(self) -> None:
        similarity = table_similarity(
            {
                frozenset("AB"): 0.95,
                frozenset("BC"): 0.95,
                frozenset("AC"): 0.80,
            }
        )
        table = {"A": "A", "B": "B", "C": "C"}
        clusters = find_clusters(table, similarity=similarity)
        assert clusters_to_mapping(clusters) == {"A": ["B"]}

    def test_scan_order_changes_grouping(self) -> None:
        similarity = table_similarity(
            {
                frozenset("AB"): 0.95,
                frozenset("BC"): 0.95,
                frozenset("AC"): 0.80,
            }
        )
        table = {"B": "B", "A": "A", "C": "C"}
        clusters = find_clusters(table, similarity=similarity)
        assert clusters_to_mapping(clusters) == {"B": ["A", "C"]}

    def test_threshold_is_strict(self) -> None:
        similarity = table_similarity({frozenset("AB"): 0.90})
        assert find_clusters({"A": "A", "B": "B"}, similarity=similarity) == []

    def test_empty_groups_kept_by_raw_scan(self) -> None:
        groups = cluster_greedy({"A": "h1", "B": "h2"}, similarity=exact_match)
        assert [(g.head, g.members) for g in groups] == [("A", []), ("B", [])]

    def test_absent_fingerprints_excluded(self) -> None:
        table = {"A": None, "B": "h1", "C": None, "D": "h1"}
        clusters = find_clusters(table, similarity=exact_match)
        assert clusters_to_mapping(clusters) == {"B": ["D"]}
        seen = {c.head for c in clusters} | {m for c in clusters for m in c.members}
        assert "A" not in seen and "C" not in seen

    def test_present_fingerprints_keeps_order(self) -> None:
        table = {"C": "x", "A": None, "B": "y"}
        assert list(present_fingerprints(table)) == ["C", "B"]

    def test_partition_property(self) -> None:
        rng = random.Random(7)
        pool = [random_hex(rng) for _ in range(8)]
        fingerprints = {f"link{i}": rng.choice(pool) for i in range(200)}

        groups = cluster_greedy(fingerprints)
        placed = [g.head for g in groups] + [m for g in groups for m in g.members]
        assert sorted(placed) == sorted(fingerprints)
        assert len(placed) == len(set(placed))

    def test_members_never_become_heads(self) -> None:
        table = {"A": "h1", "B": "h1", "C": "h2", "D": "h1", "E": "h2"}
        clusters = find_clusters(table, similarity=exact_match)
        heads = {c.head for c in clusters}
        members = {m for c in clusters for m in c.members}
        assert heads == {"A", "C"}
        assert heads.isdisjoint(members)

    def test_deterministic(self) -> None:
        rng = random.Random(11)
        pool = [random_hex(rng) for _ in range(5)]
        table = {f"http://img/{i}.jpg": rng.choice(pool) for i in range(100)}
        first = find_clusters(table)
        second = find_clusters(dict(table))
        assert [c.to_dict() for c in first] == [c.to_dict() for c in second]

    def test_near_hashes_grouped(self) -> None:
        table = {
            "a": "0000000000000000",
            "b": "0000000000000007",  # 3 bits off
            "c": "ffffffffffffffff",
        }
        assert clusters_to_mapping(find_clusters(table)) == {"a": ["b"]}

    def test_empty_input(self) -> None:
        assert find_clusters({}) == []


class TestTransitive:
    def test_chains_are_merged(self) -> None:
        similarity = table_similarity(
            {
                frozenset("AB"): 0.95,
                frozenset("BC"): 0.95,
                frozenset("AC"): 0.80,
            }
        )
        groups = cluster_transitive({"A": "A", "B": "B", "C": "C"}, similarity=similarity)
        assert clusters_to_mapping(groups) == {"A": ["B", "C"]}

    def test_selected_by_config(self) -> None:
        similarity = table_similarity(
            {
                frozenset("AB"): 0.20,
                frozenset("BC"): 0.95,
                frozenset("AC"): 0.95,
            }
        )
        table = {"A": "A", "B": "B", "C": "C"}
        config = ClusterConfig(cluster_mode=ClusterMode.TRANSITIVE)
        assert clusters_to_mapping(find_clusters(table, config, similarity)) == {"A": ["B", "C"]}
        assert clusters_to_mapping(find_clusters(table, similarity=similarity)) == {"A": ["C"]}

    def test_singletons_dropped(self) -> None:
        table = {"A": "h1", "B": "h2", "C": "h1"}
        config = ClusterConfig(cluster_mode=ClusterMode.TRANSITIVE)
        assert clusters_to_mapping(find_clusters(table, config, exact_match)) == {"A": ["C"]}
