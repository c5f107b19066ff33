from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..nlp.schema import AppType
from .detect_common import detect_package_manager, detect_ports, parse_env_requirements
from .detect_container import detect_docker
from .detect_node import detect_node_framework, node_dependencies
from .detect_python import detect_python_framework, pip_dependencies
from .detect_static import detect_migrations, detect_static_dir
from .profile import PackageManager, RepositoryProfile
from .walk import file_names

logger = logging.getLogger(__name__)


def detect_app_type(root: str | Path) -> AppType:
    app_type = detect_python_framework(root)
    if app_type is not None:
        return app_type

    app_type = detect_node_framework(root)
    if app_type is not None:
        return app_type

    names = set(file_names(root))
    if "Gemfile" in names:
        return AppType.RAILS
    if "pom.xml" in names or "build.gradle" in names:
        return AppType.SPRING
    return AppType.UNKNOWN


def extract_dependencies(root: str | Path, package_manager: PackageManager) -> List[str]:
    if package_manager == PackageManager.PIP:
        return pip_dependencies(root)
    if package_manager in (PackageManager.NPM, PackageManager.YARN):
        return node_dependencies(root)
    return []


def resolve_profile(app_root: str | Path) -> RepositoryProfile:
    root = Path(app_root)
    app_type = detect_app_type(root)
    package_manager = detect_package_manager(root)
    profile = RepositoryProfile.build(
        app_type=app_type,
        package_manager=package_manager,
        dependencies=extract_dependencies(root, package_manager),
        exposed_ports=detect_ports(root),
        static_files_dir=detect_static_dir(root),
        has_database_migrations=detect_migrations(root),
        docker=detect_docker(root),
        declared_env_vars=parse_env_requirements(root),
    )
    logger.info(
        "Classified %s as %s (%s), ports=%s, docker=%s",
        root, app_type.value, package_manager.value, list(profile.exposed_ports), profile.docker is not None,
    )
    return profile
