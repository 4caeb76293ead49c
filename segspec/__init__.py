# CUI // SP-CTI
"""segspec: Kubernetes NetworkPolicy generation from application configs.

Statically scans configuration artifacts (Spring, Docker Compose, Kubernetes
manifests, Helm charts, .env files, Maven/Gradle build files), infers the
network dependencies between services and renders them as NetworkPolicy YAML.
"""

__version__ = "0.4.0"
