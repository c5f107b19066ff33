from __future__ import annotations

import json
from pathlib import Path

from .profile import RepositoryProfile


def emit_report(profile: RepositoryProfile, dest_path: str | Path) -> None:
    dest = Path(dest_path)
    dest.mkdir(parents=True, exist_ok=True)
    # JSON profile
    with open(dest / "repository_profile.json", "w") as f:
        json.dump(profile.to_dict(), f, indent=2)
    # Human summary
    lines = []
    lines.append(f"Application type: {profile.app_type.value}")
    lines.append(f"Package manager: {profile.package_manager.value}")
    lines.append(f"Ports: {', '.join(str(p) for p in profile.exposed_ports)}")
    lines.append(f"Static files: {profile.static_files_dir or '-'}")
    lines.append(f"Database migrations: {profile.has_database_migrations}")
    lines.append(f"Requires build: {profile.requires_build}")
    lines.append("")
    lines.append("Build commands:")
    for cmd in profile.build_commands:
        lines.append(f"- `{cmd}`")
    lines.append("")
    lines.append("Start commands:")
    for cmd in profile.start_commands:
        lines.append(f"- `{cmd}`")
    lines.append("")
    if profile.docker:
        lines.append("Docker:")
        lines.append(f"- Dockerfile: {profile.docker.dockerfile_path or '-'}")
        lines.append(f"- Exposed ports: {list(profile.docker.exposed_ports)}")
        lines.append(f"- Volumes: {list(profile.docker.volumes)}")
        lines.append(f"- Compose services: {list(profile.docker.compose_services)}")
        lines.append("")
    lines.append("Dependencies:")
    for dep in profile.dependencies:
        lines.append(f"- {dep}")
    lines.append("")
    lines.append("Environment keys (declared):")
    for k in profile.declared_env_vars:
        lines.append(f"- {k}")

    with open(dest / "analysis.md", "w") as f:
        f.write("\n".join(lines) + "\n")
