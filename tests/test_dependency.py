# [TEMPLATE: CUI // SP-CTI]
"""Tests for segspec.model.dependency: facts, canonical keys and DependencySet."""

import threading

import pytest

from segspec.model.dependency import Confidence, DependencySet, NetworkDependency


class TestNetworkDependency:
    """Canonical key and normalization."""

    def test_key_format(self, dep):
        assert dep().key() == "app->db:5432/TCP"

    def test_key_ignores_display_fields(self, dep):
        a = dep(description="PostgreSQL", confidence=Confidence.HIGH, source_file="a.yml")
        b = dep(description="other", confidence=Confidence.LOW, source_file="b.yml")
        assert a.key() == b.key()

    def test_protocol_upper_cased(self):
        assert NetworkDependency(target="x", port=1, protocol="udp").protocol == "UDP"

    def test_empty_protocol_defaults_to_tcp(self):
        assert NetworkDependency(target="x", port=1, protocol="").protocol == "TCP"

    def test_confidence_coerced_from_string(self):
        assert NetworkDependency(confidence="low").confidence is Confidence.LOW

    def test_confidence_str(self):
        assert str(Confidence.MEDIUM) == "medium"

    def test_has_port(self, dep):
        assert dep(port=80).has_port
        assert not dep(port=0).has_port
        assert not dep(port=-1).has_port

    def test_dict_round_trip(self, dep):
        original = dep(description="PostgreSQL", confidence=Confidence.MEDIUM)
        assert NetworkDependency.from_dict(original.to_dict()) == original

    def test_to_dict_confidence_is_plain_string(self, dep):
        assert dep().to_dict()["confidence"] == "high"

    def test_frozen(self, dep):
        with pytest.raises(Exception):
            dep().port = 1


class TestDependencySetAdd:
    """First-write-wins deduplication."""

    def test_add_is_idempotent(self, dep):
        ds = DependencySet("app")
        assert ds.add(dep()) is True
        assert ds.add(dep()) is False
        assert len(ds) == 1

    def test_duplicate_does_not_upgrade(self, dep):
        ds = DependencySet("app")
        ds.add(dep(confidence=Confidence.LOW, description="first"))
        ds.add(dep(confidence=Confidence.HIGH, description="second"))
        only = ds.dependencies()[0]
        assert only.confidence is Confidence.LOW
        assert only.description == "first"

    def test_protocol_is_part_of_identity(self, dep):
        ds = DependencySet("app")
        ds.add(dep(protocol="TCP"))
        ds.add(dep(protocol="UDP"))
        assert len(ds) == 2

    def test_add_all_counts_new(self, dep):
        ds = DependencySet("app")
        assert ds.add_all([dep(), dep(), dep(port=1)]) == 2

    def test_merge(self, dep):
        a = DependencySet("app")
        a.add(dep(port=1))
        b = DependencySet("other")
        b.add(dep(port=1))
        b.add(dep(port=2))
        a.merge(b)
        assert [d.port for d in a.dependencies()] == [1, 2]

    def test_concurrent_add(self, dep):
        ds = DependencySet("app")
        facts = [dep(port=p) for p in range(1, 201)]

        def worker():
            for fact in facts:
                ds.add(fact)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(ds) == 200


class TestDependencySetQueries:
    """Sorted views over the set."""

    def test_dependencies_sorted_by_key(self, dep):
        ds = DependencySet("app")
        ds.add(dep(source="b", target="z"))
        ds.add(dep(source="a", target="y"))
        ds.add(dep(source="a", target="x"))
        assert [d.key() for d in ds.dependencies()] == sorted(d.key() for d in ds.dependencies())
        assert ds.dependencies()[0].target == "x"

    def test_services_and_sources(self, dep):
        ds = DependencySet("app")
        ds.add(dep(source="web", target="api"))
        ds.add(dep(source="api", target="db"))
        ds.add(dep(source="", target="cache"))
        assert ds.services() == ["api", "cache", "db", "web"]
        assert ds.sources() == ["api", "web"]

    def test_ingress_and_egress(self, dep):
        ds = DependencySet("app")
        ds.add(dep(source="web", target="api", port=8080))
        ds.add(dep(source="api", target="db", port=5432))
        assert [d.source for d in ds.ingress_for("api")] == ["web"]
        assert [d.target for d in ds.egress_for("api")] == ["db"]
        assert ds.ingress_for("web") == []

    def test_filtered_keeps_service_name(self, dep):
        ds = DependencySet("shop")
        ds.add(dep(port=1))
        ds.add(dep(port=2))
        subset = ds.filtered([dep(port=2)])
        assert subset.service_name == "shop"
        assert len(subset) == 1

    def test_contains_key(self, dep):
        ds = DependencySet("app")
        ds.add(dep())
        assert ds.contains_key("app->db:5432/TCP")
        assert "app->db:5432/TCP" in ds.keys()
