from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import yaml

from .profile import DockerConfig
from .walk import read_text

logger = logging.getLogger(__name__)

COMPOSE_FILES = ["docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"]


def parse_expose(tokens: List[str]) -> List[int]:
    ports: List[int] = []
    for token in tokens:
        token = token.strip()
        for suffix in ("/tcp", "/udp"):
            if token.endswith(suffix):
                token = token[: -len(suffix)]
        if not token.isdigit():
            continue
        port = int(token)
        if port <= 65535 and port not in ports:
            ports.append(port)
    return ports


def parse_volume(args: str) -> List[str]:
    args = args.strip()
    if args.startswith("["):
        try:
            items = json.loads(args)
        except json.JSONDecodeError:
            items = []
        return [str(v) for v in items if str(v)]
    return [tok.strip("\"'") for tok in args.split() if tok.strip("\"'")]


def compose_services(path: Path) -> List[str]:
    try:
        data = yaml.safe_load(read_text(path) or "{}") or {}
    except yaml.YAMLError as e:
        logger.warning("Could not parse %s: %s", path.name, e)
        return []
    services = data.get("services", {}) if isinstance(data, dict) else {}
    return [str(name) for name in services] if isinstance(services, dict) else []


def detect_docker(root: str | Path) -> Optional[DockerConfig]:
    root_path = Path(root)
    dockerfile = root_path / "Dockerfile"
    compose = next((root_path / n for n in COMPOSE_FILES if (root_path / n).is_file()), None)

    if not dockerfile.is_file() and compose is None:
        return None

    exposed: List[int] = []
    volumes: List[str] = []
    if dockerfile.is_file():
        for line in read_text(dockerfile).splitlines():
            line = line.strip()
            parts = line.split(None, 1)
            if len(parts) < 2:
                continue
            instr, args = parts[0].upper(), parts[1]
            if instr == "EXPOSE":
                exposed.extend(p for p in parse_expose(args.split()) if p not in exposed)
            elif instr == "VOLUME":
                volumes.extend(parse_volume(args))

    return DockerConfig(
        dockerfile_path="Dockerfile" if dockerfile.is_file() else None,
        exposed_ports=tuple(exposed),
        volumes=tuple(volumes),
        compose_services=tuple(compose_services(compose)) if compose else (),
    )
