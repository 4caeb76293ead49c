# [TEMPLATE: CUI // SP-CTI]
"""Tests for segspec.parsers.compose: Docker Compose extraction."""

import textwrap

import pytest

from segspec.model.dependency import Confidence
from segspec.parsers.compose import (
    StringList,
    StringMap,
    decode_list_or_map,
    infer_from_image,
    parse_compose,
    parse_container_port,
)
from segspec.resilience.errors import ParseError


def _compose(text):
    return parse_compose("docker-compose.yml", textwrap.dedent(text).encode())


def _find(deps, source, target, port=None):
    for d in deps:
        if d.source == source and d.target == target and (port is None or d.port == port):
            return d
    raise AssertionError(f"no fact {source}->{target}:{port} in {deps}")


class TestInferFromImage:
    def test_registry_path_and_tag_stripped(self):
        assert infer_from_image("docker.io/library/postgres:15") == (5432, "PostgreSQL")

    def test_prefix_match(self):
        assert infer_from_image("bitnami/redis-cluster:7") == (6379, "Redis")

    def test_unknown(self):
        assert infer_from_image("mycorp/orders:1.2") == (0, "")
        assert infer_from_image("") == (0, "")
        assert infer_from_image(None) == (0, "")


class TestPorts:
    @pytest.mark.parametrize("entry,expected", [
        ("8080", (8080, "TCP")),
        ("3000:3000", (3000, "TCP")),
        ("127.0.0.1:8080:80", (80, "TCP")),
        ("53:53/udp", (53, "UDP")),
        ("8080-8081:8080-8081", (8080, "TCP")),
        (9000, (9000, "TCP")),
        ({"target": 80, "published": 8080, "protocol": "tcp"}, (80, "TCP")),
        ("garbage", (0, "TCP")),
    ])
    def test_container_port(self, entry, expected):
        assert parse_container_port(entry) == expected


class TestListOrMap:
    def test_list(self):
        assert decode_list_or_map(["a", "b"]) == StringList(["a", "b"])

    def test_map(self):
        assert decode_list_or_map({"a": {"condition": "x"}}) == StringMap({"a": {"condition": "x"}})

    def test_other_shape_is_empty(self):
        assert decode_list_or_map("db") == StringList()


class TestParseCompose:
    SCENARIO = """\
        services:
          app:
            image: mycorp/app:1.0
            ports:
              - "3000:3000"
            depends_on:
              - db
          db:
            image: postgres:15
    """

    def test_end_to_end_facts(self):
        deps = _compose(self.SCENARIO)
        exposed = _find(deps, "app", "app", 3000)
        assert (exposed.protocol, exposed.confidence) == ("TCP", Confidence.HIGH)
        db = _find(deps, "app", "db")
        assert (db.port, db.confidence, db.description) == (5432, Confidence.HIGH, "PostgreSQL")

    def test_own_image_is_low_self_fact(self):
        d = _find(_compose(self.SCENARIO), "db", "db", 5432)
        assert d.confidence is Confidence.LOW
        assert d.description == "PostgreSQL (inferred from image)"

    def test_depends_on_unknown_image_is_medium_port_zero(self):
        deps = _compose("""\
            services:
              web:
                depends_on:
                  api:
                    condition: service_healthy
              api:
                image: mycorp/api
        """)
        d = _find(deps, "web", "api")
        assert (d.port, d.confidence, d.description) == (0, Confidence.MEDIUM, "depends_on")

    def test_environment_list_and_map(self):
        deps = _compose("""\
            services:
              a:
                environment:
                  - API_URL=http://api:8080
              b:
                environment:
                  CACHE: cache:6379
        """)
        a = _find(deps, "a", "api", 8080)
        assert a.confidence is Confidence.MEDIUM
        b = _find(deps, "b", "cache", 6379)
        assert b.confidence is Confidence.MEDIUM

    def test_no_services_map(self):
        assert _compose("version: '3'\n") == []

    def test_malformed(self):
        with pytest.raises(ParseError):
            _compose("services: [unclosed\n")
