# CUI // SP-CTI
"""Human-readable dependency report."""

from segspec.model.dependency import Confidence, DependencySet


def summary(ds: DependencySet) -> str:
    deps = ds.dependencies()
    if not deps:
        return "No dependencies found.\n"

    lines = [f"Service: {ds.service_name}", f"Dependencies: {len(deps)}", ""]
    counts = {level: 0 for level in Confidence}
    for dep in deps:
        counts[dep.confidence] += 1
        endpoint = f"{dep.target}:{dep.port}/{dep.protocol}"
        lines.append(f"  → {endpoint}  [{dep.confidence}]  {dep.description or endpoint}")
        if dep.source_file:
            lines.append(f"    source: {dep.source_file}")

    lines.append("")
    lines.append(
        f"Confidence: {counts[Confidence.HIGH]} high, "
        f"{counts[Confidence.MEDIUM]} medium, {counts[Confidence.LOW]} low"
    )
    if counts[Confidence.LOW]:
        lines.append(
            f"⚠ {counts[Confidence.LOW]} low-confidence dependencies "
            "- verify before enforcing"
        )
    return "\n".join(lines) + "\n"
