from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..nlp.schema import AppType


class PackageManager(str, Enum):
    PIP = "Pip"
    NPM = "Npm"
    YARN = "Yarn"
    MAVEN = "Maven"
    GRADLE = "Gradle"
    BUNDLER = "Bundler"
    COMPOSER = "Composer"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DockerConfig:
    dockerfile_path: Optional[str] = None
    exposed_ports: Tuple[int, ...] = ()
    volumes: Tuple[str, ...] = ()
    compose_services: Tuple[str, ...] = ()


DEFAULT_PORTS: Tuple[int, ...] = (5000,)


@dataclass(frozen=True)
class RepositoryProfile:
    """
    Static facts about a checked-out repository.

    Build and start commands are derived from (app_type, package_manager,
    has_database_migrations) when the profile is created through ``build``;
    they are never set on their own.
    """
    app_type: AppType = AppType.UNKNOWN
    package_manager: PackageManager = PackageManager.UNKNOWN
    dependencies: Tuple[str, ...] = ()
    exposed_ports: Tuple[int, ...] = DEFAULT_PORTS
    static_files_dir: Optional[str] = None
    has_database_migrations: bool = False
    docker: Optional[DockerConfig] = None
    declared_env_vars: Tuple[str, ...] = ()
    build_commands: Tuple[str, ...] = field(default=())
    start_commands: Tuple[str, ...] = field(default=())
    requires_build: bool = False

    @classmethod
    def build(
        cls,
        app_type: AppType = AppType.UNKNOWN,
        package_manager: PackageManager = PackageManager.UNKNOWN,
        dependencies: Iterable[str] = (),
        exposed_ports: Iterable[int] = (),
        static_files_dir: Optional[str] = None,
        has_database_migrations: bool = False,
        docker: Optional[DockerConfig] = None,
        declared_env_vars: Iterable[str] = (),
    ) -> "RepositoryProfile":
        from .commands import generate_commands

        build_cmds, start_cmds, requires_build = generate_commands(
            app_type, package_manager, has_database_migrations
        )
        ports = tuple(sorted(set(exposed_ports))) or DEFAULT_PORTS
        return cls(
            app_type=app_type,
            package_manager=package_manager,
            dependencies=tuple(dict.fromkeys(dependencies)),
            exposed_ports=ports,
            static_files_dir=static_files_dir,
            has_database_migrations=has_database_migrations,
            docker=docker,
            declared_env_vars=tuple(dict.fromkeys(declared_env_vars)),
            build_commands=tuple(build_cmds),
            start_commands=tuple(start_cmds),
            requires_build=requires_build,
        )

    @property
    def primary_port(self) -> int:
        return self.exposed_ports[0] if self.exposed_ports else DEFAULT_PORTS[0]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["app_type"] = self.app_type.value
        data["package_manager"] = self.package_manager.value
        return data
