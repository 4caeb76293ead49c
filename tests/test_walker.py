# [TEMPLATE: CUI // SP-CTI]
"""Tests for segspec.walker: directory scanning and Helm rendering."""

import subprocess
from unittest.mock import patch

import pytest
import yaml

from segspec.model.dependency import Confidence
from segspec.parsers.registry import default_registry
from segspec.renderer import per_service_network_policy
from segspec.resilience.errors import HelmRenderError, ParseError, ScanError
from segspec.walker.helm import RELEASE_NAME, render_helm_template
from segspec.walker.walker import WalkOptions, detect_helm_charts, walk

NO_HELM = WalkOptions(render_helm=False)

COMPOSE = """\
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

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
spec:
  template:
    spec:
      containers:
        - name: web
          ports:
            - containerPort: 8080
"""


def _keys(result):
    return {d.key() for d in result.dependencies}


# ---------------------------------------------------------------------------
# walk()
# ---------------------------------------------------------------------------
class TestWalk:
    def test_compose_project(self, sample_app):
        root = sample_app({"docker-compose.yml": COMPOSE}, name="app")
        result = walk(root, default_registry(), NO_HELM)
        assert result.dependencies.service_name == "app"
        assert result.warnings == []
        assert {"app->app:3000/TCP", "app->db:5432/TCP", "db->db:5432/TCP"} <= _keys(result)

    def test_compose_to_mesh_policy(self, sample_app):
        root = sample_app({"docker-compose.yml": COMPOSE}, name="app")
        text = per_service_network_policy(walk(root, default_registry(), NO_HELM).dependencies)
        policies = {doc["metadata"]["name"]: doc for doc in yaml.safe_load_all(text) if doc}
        assert "app-netpol" in policies
        egress = policies["app-netpol"]["spec"]["egress"]
        assert {"podSelector": {"matchLabels": {"app": "db"}}} in [rule["to"][0] for rule in egress]
        assert {"port": 5432, "protocol": "TCP"} in [p for rule in egress for p in rule["ports"]]
        assert "kube-system" in text

    def test_empty_source_attributed_to_root(self, sample_app):
        root = sample_app({".env": "DATABASE_URL=postgres://pg:5432/app\n"}, name="billing")
        [d] = walk(root, default_registry(), NO_HELM).dependencies
        assert (d.source, d.target, d.port) == ("billing", "pg", 5432)
        assert d.source_file.endswith(".env")

    def test_skip_dirs_pruned(self, sample_app):
        root = sample_app({
            "node_modules/lib/docker-compose.yml": COMPOSE,
            "vendor/.env": "API_URL=http://api:8000\n",
        })
        assert len(walk(root, default_registry(), NO_HELM).dependencies) == 0

    def test_parse_failure_becomes_warning(self, sample_app):
        root = sample_app({
            "src/main/resources/application.yml": "spring: [unclosed\n",
            ".env": "API_URL=http://api:8000\n",
        })
        result = walk(root, default_registry(), NO_HELM)
        [warning] = result.warnings
        assert warning.file == "src/main/resources/application.yml"
        assert warning.to_dict()["file"] == warning.file
        assert len(result.dependencies) == 1

    def test_parallel_matches_serial(self, sample_app):
        root = sample_app({
            "docker-compose.yml": COMPOSE,
            "k8s/web.yaml": DEPLOYMENT,
            "pom.xml": "<project><dependencies><dependency><groupId>redis.clients</groupId>"
                       "<artifactId>jedis</artifactId></dependency></dependencies></project>",
        })
        serial = walk(root, default_registry(), NO_HELM)
        parallel = walk(root, default_registry(), WalkOptions(render_helm=False, workers=4))
        assert _keys(serial) == _keys(parallel)
        assert "web->web:8080/TCP" in _keys(serial)
        assert "myapp->redis:6379/TCP" in _keys(serial)

    def test_missing_root(self, tmp_path):
        with pytest.raises(ScanError):
            walk(tmp_path / "nope", default_registry())

    def test_root_is_file(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(ScanError):
            walk(path, default_registry())


class TestUnexpectedContent:
    def test_scalar_ports_and_env_in_deployment(self, sample_app):
        root = sample_app({
            "docker-compose.yml": COMPOSE,
            "k8s/web.yaml": DEPLOYMENT.replace("          ports:\n            - containerPort: 8080\n",
                                               "          ports: 8080\n          env: 5\n"),
        })
        result = walk(root, default_registry(), NO_HELM)
        assert "app->app:3000/TCP" in _keys(result)
        assert not any(w.file == "k8s/web.yaml" for w in result.warnings)

    def test_unconstructible_timestamp(self, sample_app):
        root = sample_app({
            "docker-compose.yml": COMPOSE,
            "application.yml": "released: 2023-13-45\n",
        })
        result = walk(root, default_registry(), NO_HELM)
        assert "app->app:3000/TCP" in _keys(result)
        [warning] = [w for w in result.warnings if w.file == "application.yml"]
        assert isinstance(warning.error, ParseError)

    def test_self_referencing_anchor(self, sample_app):
        root = sample_app({
            "docker-compose.yml": COMPOSE,
            "application.yml": "loop: &x [*x]\nclients:\n  inventory: http://inventory:8082\n",
        })
        result = walk(root, default_registry(), NO_HELM)
        assert "app->app:3000/TCP" in _keys(result)
        assert "myapp->inventory:8082/TCP" in _keys(result)
        assert result.warnings == []

    def test_crashing_extractor_becomes_warning(self, sample_app):
        def explode(path, data):
            raise KeyError("boom")

        registry = default_registry()
        registry.register("notes.txt", explode)
        root = sample_app({"docker-compose.yml": COMPOSE, "notes.txt": "hello"})
        result = walk(root, registry, NO_HELM)
        assert "app->app:3000/TCP" in _keys(result)
        [warning] = result.warnings
        assert warning.file == "notes.txt"
        assert isinstance(warning.error, ParseError)
        assert "KeyError" in str(warning.error)

    def test_crashing_extractor_in_parallel_walk(self, sample_app):
        registry = default_registry()
        registry.register("notes.txt", lambda path, data: [][0])
        root = sample_app({"docker-compose.yml": COMPOSE, "notes.txt": "hello"})
        result = walk(root, registry, WalkOptions(render_helm=False, workers=4))
        assert "app->app:3000/TCP" in _keys(result)
        assert [w.file for w in result.warnings] == ["notes.txt"]


class TestHelmCharts:
    def _chart(self, sample_app):
        return sample_app({"charts/web/Chart.yaml": "apiVersion: v2\nname: web\nversion: 0.1.0\n"})

    def test_detect(self, sample_app):
        root = self._chart(sample_app)
        assert detect_helm_charts(root) == [root / "charts" / "web"]

    def test_rendered_manifests_are_parsed(self, sample_app):
        root = self._chart(sample_app)
        with patch("segspec.walker.walker.render_helm_template", return_value=DEPLOYMENT) as render:
            result = walk(root, default_registry(), WalkOptions(helm_values_file="values-prod.yaml"))
        assert render.call_args[0] == (root / "charts" / "web", "values-prod.yaml")
        [d] = result.dependencies
        assert d.key() == "web->web:8080/TCP"
        assert d.source_file == "charts/web/Chart.yaml (helm template)"
        assert d.confidence is Confidence.HIGH

    def test_render_failure_is_warning(self, sample_app):
        root = self._chart(sample_app)
        with patch("segspec.walker.walker.render_helm_template",
                   side_effect=HelmRenderError("helm not installed", chart="web")):
            result = walk(root, default_registry())
        [warning] = result.warnings
        assert warning.file == "charts/web/Chart.yaml"
        assert "helm not installed" in str(warning)

    def test_options_from_config(self):
        config = {"walker": {"workers": 3, "skip_dirs": ["build"]}, "helm": {"timeout_seconds": 5}}
        options = WalkOptions.from_config(config, workers=None, helm_values_file="v.yaml")
        assert options.workers == 3
        assert options.skip_dirs == frozenset({"build"})
        assert options.helm_timeout == 5
        assert options.helm_values_file == "v.yaml"


# ---------------------------------------------------------------------------
# render_helm_template()
# ---------------------------------------------------------------------------
class TestRenderHelmTemplate:
    def test_missing_binary(self, tmp_path):
        with patch("segspec.walker.helm.shutil.which", return_value=None):
            with pytest.raises(HelmRenderError, match="not installed"):
                render_helm_template(tmp_path)

    def test_success_with_values(self, tmp_path):
        done = subprocess.CompletedProcess(args=[], returncode=0, stdout=DEPLOYMENT, stderr="")
        with patch("segspec.walker.helm.shutil.which", return_value="/usr/bin/helm"), \
                patch("segspec.walker.helm.subprocess.run", return_value=done) as run:
            out = render_helm_template(tmp_path, "values.yaml", timeout=7)
        assert out == DEPLOYMENT
        cmd = run.call_args[0][0]
        assert cmd == ["helm", "template", RELEASE_NAME, str(tmp_path), "-f", "values.yaml"]
        assert run.call_args[1]["timeout"] == 7

    def test_nonzero_exit(self, tmp_path):
        failed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="Error: bad chart\n")
        with patch("segspec.walker.helm.shutil.which", return_value="/usr/bin/helm"), \
                patch("segspec.walker.helm.subprocess.run", return_value=failed):
            with pytest.raises(HelmRenderError, match="bad chart"):
                render_helm_template(tmp_path)

    def test_timeout(self, tmp_path):
        with patch("segspec.walker.helm.shutil.which", return_value="/usr/bin/helm"), \
                patch("segspec.walker.helm.subprocess.run",
                      side_effect=subprocess.TimeoutExpired(cmd="helm", timeout=1)):
            with pytest.raises(HelmRenderError, match="timed out"):
                render_helm_template(tmp_path, timeout=1)
