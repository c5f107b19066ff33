"""
Built-in resource graphs: one compute instance plus the firewall in front of it.

Each provider builder returns ``(resources, variables, outputs)``. Every
``var.`` reference used here is either declared in the returned variables or
is a wrapper input (region, zone, project_id, repository_reference).
"""

import logging
import shlex
from typing import Any, Dict, List, Optional, Tuple

from ..analyzer.profile import RepositoryProfile
from ..nlp.schema import AppType, CloudProvider, RequirementModel
from .plan import Resource, Topology

logger = logging.getLogger(__name__)

APP_DIR = "/opt/app"
NAME_PREFIX = "autodeploy"

Blueprint = Tuple[List[Resource], Dict[str, Dict[str, Any]], Dict[str, Dict[str, Any]]]

PYTHON_APPS = {AppType.FLASK, AppType.DJANGO, AppType.FASTAPI}
NODE_APPS = {AppType.NODEJS, AppType.EXPRESS, AppType.REACT, AppType.NEXTJS}

RUNTIME_PACKAGES = {
    "apt": {
        "python": ["python3", "python3-pip", "python3-venv"],
        "node": ["nodejs", "npm"],
        "ruby": ["ruby-full", "build-essential"],
        "java": ["default-jdk", "maven"],
        "docker": ["docker.io", "docker-compose"],
    },
    "yum": {
        "python": ["python3", "python3-pip"],
        "node": ["nodejs", "npm"],
        "ruby": ["ruby", "ruby-devel", "gcc", "make"],
        "java": ["java-17-amazon-corretto-devel", "maven"],
        "docker": ["docker"],
    },
}


def _runtime(profile: RepositoryProfile, containerized: bool) -> Optional[str]:
    if containerized:
        return "docker"
    if profile.app_type in PYTHON_APPS:
        return "python"
    if profile.app_type in NODE_APPS:
        return "node"
    if profile.app_type == AppType.RAILS:
        return "ruby"
    if profile.app_type == AppType.SPRING:
        return "java"
    return None


def _install_lines(pkg_tool: str, runtime: Optional[str]) -> List[str]:
    packages = ["git"] + RUNTIME_PACKAGES[pkg_tool].get(runtime or "", [])
    if pkg_tool == "apt":
        lines = [
            "export DEBIAN_FRONTEND=noninteractive",
            "apt-get update -y",
            f"apt-get install -y {' '.join(packages)}",
        ]
    else:
        lines = ["yum update -y", f"yum install -y {' '.join(packages)}"]
    if runtime == "python":
        lines.append('command -v python >/dev/null || ln -s "$(command -v python3)" /usr/local/bin/python')
        lines.append('command -v pip >/dev/null || ln -s "$(command -v pip3)" /usr/local/bin/pip')
    elif runtime == "ruby":
        lines.append("gem install bundler")
    elif runtime == "docker":
        lines.append("systemctl enable --now docker")
    return lines


def _container_lines(profile: RepositoryProfile) -> List[str]:
    docker = profile.docker
    if docker and docker.compose_services:
        return ["docker-compose up -d --build"]
    ports = (docker.exposed_ports if docker else ()) or profile.exposed_ports
    publish = " ".join(f"-p {p}:{p}" for p in ports)
    return ["docker build -t app .", f"docker run -d --restart unless-stopped {publish} app"]


def bootstrap_script(
    profile: RepositoryProfile,
    repository_reference: str,
    pkg_tool: str = "apt",
    containerized: bool = False,
) -> str:
    """Startup script that installs the runtime, fetches the repository and starts the app."""
    lines = ["#!/bin/bash", "set -e"]
    lines += _install_lines(pkg_tool, _runtime(profile, containerized))
    if repository_reference:
        lines.append(f"git clone --depth 1 {shlex.quote(repository_reference)} {APP_DIR}")
        lines.append(f"cd {APP_DIR}")
    if containerized:
        lines += _container_lines(profile)
    else:
        lines += list(profile.build_commands)
        for cmd in profile.start_commands:
            lines.append(f"nohup {cmd} > /var/log/app.log 2>&1 &")
    return "\n".join(lines) + "\n"


def open_ports(requirements: RequirementModel, profile: RepositoryProfile) -> List[int]:
    ports = {22}
    ports.update(profile.exposed_ports)
    ports.update(requirements.ports)
    if profile.docker:
        ports.update(profile.docker.exposed_ports)
    return sorted(ports)


def _aws(size: str, script: str, ports: List[int]) -> Blueprint:
    sg = Resource("aws_security_group", "app_sg", {
        "name": f"{NAME_PREFIX}-sg",
        "description": "Inbound traffic for the application",
        "ingress": [
            {
                "description": f"port {port}",
                "from_port": port,
                "to_port": port,
                "protocol": "tcp",
                "cidr_blocks": ["0.0.0.0/0"],
            }
            for port in ports
        ],
        "egress": [{
            "from_port": 0,
            "to_port": 0,
            "protocol": "-1",
            "cidr_blocks": ["0.0.0.0/0"],
        }],
    })
    instance = Resource("aws_instance", "app", {
        "ami": "var.ami_id",
        "instance_type": size,
        "vpc_security_group_ids": ["aws_security_group.app_sg.id"],
        "user_data": script,
        "tags": {"Name": f"{NAME_PREFIX}-app", "ManagedBy": NAME_PREFIX},
    })
    variables = {
        "ami_id": {
            "type": "string",
            "description": "AMI for the instance (Amazon Linux 2 in us-east-1 by default)",
            "default": "ami-0c02fb55956c7d316",
        },
    }
    outputs = {
        "instance_ip": {"value": "aws_instance.app.public_ip", "description": "Instance public IP"},
        "public_dns": {"value": "aws_instance.app.public_dns", "description": "Instance public DNS"},
    }
    return [sg, instance], variables, outputs


def _gcp(size: str, script: str, ports: List[int]) -> Blueprint:
    firewall = Resource("google_compute_firewall", "app_fw", {
        "name": f"{NAME_PREFIX}-allow-web",
        "network": "default",
        "allow": [{"protocol": "tcp", "ports": [str(p) for p in ports]}],
        "source_ranges": ["0.0.0.0/0"],
        "target_tags": [f"{NAME_PREFIX}-web"],
    })
    instance = Resource("google_compute_instance", "app", {
        "name": f"{NAME_PREFIX}-app",
        "machine_type": size,
        "zone": "var.zone",
        "tags": [f"{NAME_PREFIX}-web"],
        "boot_disk": {"initialize_params": {"image": "ubuntu-os-cloud/ubuntu-2204-lts"}},
        "network_interface": [{"network": "default", "access_config": [{}]}],
        "metadata_startup_script": script,
        "labels": {"managed-by": NAME_PREFIX},
    })
    outputs = {
        "instance_ip": {
            "value": "google_compute_instance.app.network_interface[0].access_config[0].nat_ip",
            "description": "Instance external IP",
        },
    }
    return [firewall, instance], {}, outputs


def _azure(size: str, script: str, ports: List[int]) -> Blueprint:
    rg = {"resource_group_name": "azurerm_resource_group.rg.name", "location": "azurerm_resource_group.rg.location"}
    resources = [
        Resource("azurerm_resource_group", "rg", {"name": f"{NAME_PREFIX}-rg", "location": "var.region"}),
        Resource("azurerm_virtual_network", "vnet", {
            "name": f"{NAME_PREFIX}-vnet", "address_space": ["10.0.0.0/16"], **rg,
        }),
        Resource("azurerm_subnet", "subnet", {
            "name": f"{NAME_PREFIX}-subnet",
            "resource_group_name": "azurerm_resource_group.rg.name",
            "virtual_network_name": "azurerm_virtual_network.vnet.name",
            "address_prefixes": ["10.0.1.0/24"],
        }),
        Resource("azurerm_public_ip", "ip", {
            "name": f"{NAME_PREFIX}-ip", "allocation_method": "Static", "sku": "Standard", **rg,
        }),
        Resource("azurerm_network_security_group", "nsg", {
            "name": f"{NAME_PREFIX}-nsg",
            **rg,
            "security_rule": [
                {
                    "name": f"allow-{port}",
                    "priority": 100 + i,
                    "direction": "Inbound",
                    "access": "Allow",
                    "protocol": "Tcp",
                    "source_port_range": "*",
                    "destination_port_range": str(port),
                    "source_address_prefix": "*",
                    "destination_address_prefix": "*",
                }
                for i, port in enumerate(ports)
            ],
        }),
        Resource("azurerm_network_interface", "nic", {
            "name": f"{NAME_PREFIX}-nic",
            **rg,
            "ip_configuration": [{
                "name": "internal",
                "subnet_id": "azurerm_subnet.subnet.id",
                "private_ip_address_allocation": "Dynamic",
                "public_ip_address_id": "azurerm_public_ip.ip.id",
            }],
        }),
        Resource("azurerm_network_interface_security_group_association", "nic_nsg", {
            "network_interface_id": "azurerm_network_interface.nic.id",
            "network_security_group_id": "azurerm_network_security_group.nsg.id",
        }),
        Resource("random_password", "admin", {"length": 20, "special": True}),
        Resource("azurerm_linux_virtual_machine", "app", {
            "name": f"{NAME_PREFIX}-app",
            **rg,
            "size": size,
            "admin_username": "azureuser",
            "admin_password": "random_password.admin.result",
            "disable_password_authentication": False,
            "network_interface_ids": ["azurerm_network_interface.nic.id"],
            "os_disk": {"caching": "ReadWrite", "storage_account_type": "Standard_LRS"},
            "source_image_reference": {
                "publisher": "Canonical",
                "offer": "0001-com-ubuntu-server-jammy",
                "sku": "22_04-lts",
                "version": "latest",
            },
            "custom_data": script,
            "tags": {"ManagedBy": NAME_PREFIX},
        }),
    ]
    outputs = {
        "public_ip": {"value": "azurerm_public_ip.ip.ip_address", "description": "Public IP address"},
    }
    return resources, {}, outputs


def _digitalocean(size: str, script: str, ports: List[int]) -> Blueprint:
    droplet = Resource("digitalocean_droplet", "app", {
        "name": f"{NAME_PREFIX}-app",
        "image": "ubuntu-22-04-x64",
        "region": "var.region",
        "size": size,
        "user_data": script,
    })
    firewall = Resource("digitalocean_firewall", "app_fw", {
        "name": f"{NAME_PREFIX}-fw",
        "droplet_ids": ["digitalocean_droplet.app.id"],
        "inbound_rule": [
            {"protocol": "tcp", "port_range": str(port), "source_addresses": ["0.0.0.0/0", "::/0"]}
            for port in ports
        ],
        "outbound_rule": [
            {"protocol": proto, "port_range": "1-65535", "destination_addresses": ["0.0.0.0/0", "::/0"]}
            for proto in ("tcp", "udp")
        ],
    })
    outputs = {
        "instance_ip": {"value": "digitalocean_droplet.app.ipv4_address", "description": "Droplet public IP"},
    }
    return [droplet, firewall], {}, outputs


BUILDERS = {
    CloudProvider.AWS: (_aws, "yum"),
    CloudProvider.GCP: (_gcp, "apt"),
    CloudProvider.AZURE: (_azure, "apt"),
    CloudProvider.DIGITALOCEAN: (_digitalocean, "apt"),
}

VM_TOPOLOGIES = {Topology.SINGLE_VM, Topology.CONTAINER_SERVICE, Topology.ORCHESTRATED}


def single_instance(
    provider: CloudProvider,
    topology: Topology,
    size: str,
    requirements: RequirementModel,
    profile: RepositoryProfile,
    repository_reference: str = "",
) -> Blueprint:
    """
    Build the instance-plus-firewall graph for ``provider``.

    Topologies without a host (Serverless, StaticSite) and the Unknown
    provider have no built-in blueprint and yield an empty graph.
    """
    if provider not in BUILDERS or topology not in VM_TOPOLOGIES:
        logger.warning("No built-in blueprint for %s on %s", topology.value, provider.value)
        return [], {}, {}
    builder, pkg_tool = BUILDERS[provider]
    containerized = topology == Topology.CONTAINER_SERVICE and profile.docker is not None
    script = bootstrap_script(profile, repository_reference, pkg_tool, containerized)
    return builder(size, script, open_ports(requirements, profile))
