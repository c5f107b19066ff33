"""
Provisioning state machine:

    Rendered -> (dry run: Done) -> BinaryChecked -> Initialized -> Planned
             -> Applied -> OutputsRead -> Done

Every stage appends a log line and an event to the run directory. Any
non-zero terraform exit stops the machine with ExternalProcessFailure.
"""

import json
import logging
import shutil
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .credentials import CredentialStore
from .errors import CredentialMissing, ToolingMissing
from .events import EventTypes, emit_event
from .generator import render, write_files
from .ids import new_run_id
from .nlp.schema import CloudProvider
from .selector.plan import DeploymentPlan, DeploymentResult
from .settings import Settings
from .terraform import parse_outputs, run_stage

logger = logging.getLogger(__name__)

DRY_RUN_ENDPOINT = "dry-run"
UNKNOWN_ENDPOINT = "unknown"

# Probed in order for the endpoint; the first two also give the public IP.
ENDPOINT_OUTPUTS = ("instance_ip", "public_ip", "public_dns", "website_url", "site_url")
IP_OUTPUTS = ("instance_ip", "public_ip")


class Stage(str, Enum):
    RENDERED = "Rendered"
    BINARY_CHECKED = "BinaryChecked"
    INITIALIZED = "Initialized"
    PLANNED = "Planned"
    APPLIED = "Applied"
    OUTPUTS_READ = "OutputsRead"
    DONE = "Done"


def prepare_run_dir(output_root: Path) -> Path:
    """Create a fresh run directory; an existing directory is never reused."""
    output_root = Path(output_root)
    output_root.mkdir(parents=True, exist_ok=True)
    run_dir = output_root / new_run_id()
    run_dir.mkdir(exist_ok=False)
    return run_dir


def endpoint_from_outputs(outputs: Mapping[str, Any], port: Optional[int] = None) -> Tuple[str, Optional[str]]:
    """Pick the endpoint URL and public IP from terraform outputs."""
    public_ip = next(
        (outputs[k] for k in IP_OUTPUTS if isinstance(outputs.get(k), str) and outputs[k]), None
    )
    value = next(
        (outputs[k] for k in ENDPOINT_OUTPUTS if isinstance(outputs.get(k), str) and outputs[k]), None
    )
    if value is None:
        return UNKNOWN_ENDPOINT, public_ip
    if value.startswith(("http://", "https://")):
        return value, public_ip
    if port and port != 80:
        return f"http://{value}:{port}", public_ip
    return f"http://{value}", public_ip


class Provisioner:
    def __init__(self, settings: Settings, credentials: CredentialStore):
        self.settings = settings
        self.credentials = credentials
        self.stage: Optional[Stage] = None
        self.log_lines: List[str] = []

    def _advance(self, run_dir: Path, stage: Stage, message: str, event_type: Optional[str] = None, **data) -> None:
        self.stage = stage
        self.log_lines.append(message)
        logger.info(message)
        # terraform stages already emit their own event from run_stage
        if event_type:
            emit_event(run_dir, event_type, {"stage": stage.value, **data})

    def _result(self, plan: DeploymentPlan, run_dir: Path, url: str, public_ip: Optional[str] = None) -> DeploymentResult:
        return DeploymentResult(
            endpoint_url=url,
            topology_label=plan.topology.value,
            public_ip=public_ip,
            log_lines=tuple(self.log_lines),
            output_dir=str(run_dir),
        )

    def run(
        self,
        plan: DeploymentPlan,
        repository_reference: str,
        dry_run: bool,
        provider: Optional[CloudProvider] = None,
    ) -> DeploymentResult:
        provider = provider or plan.provider

        # Rendered
        files = render(plan, repository_reference)
        run_dir = prepare_run_dir(self.settings.output_root)
        write_files(files, run_dir)
        self._advance(
            run_dir, Stage.RENDERED,
            f"Terraform files generated for {plan.topology.value} in {run_dir}",
            EventTypes.RENDERED, files=sorted(files), resources=len(plan.resource_graph),
        )

        if dry_run:
            self.log_lines.append("Dry run: no infrastructure provisioned; files are available for review")
            self._advance(run_dir, Stage.DONE, "Dry run complete", EventTypes.DRY_RUN)
            return self._result(plan, run_dir, DRY_RUN_ENDPOINT)

        # BinaryChecked
        binary = shutil.which(self.settings.terraform_binary)
        if binary is None:
            emit_event(run_dir, EventTypes.ERROR, {"reason": "terraform not found"})
            raise ToolingMissing(self.settings.terraform_binary)
        self._advance(run_dir, Stage.BINARY_CHECKED, f"Using terraform at {binary}", EventTypes.BINARY_CHECKED)

        try:
            env = self.credentials.env_for(provider)
            plan_vars = self.credentials.plan_vars(provider)
        except CredentialMissing as e:
            emit_event(run_dir, EventTypes.ERROR, {"reason": str(e)})
            raise
        self.log_lines.append(f"Loaded {provider.value} credentials")
        emit_event(run_dir, EventTypes.CREDENTIALS_LOADED, {"provider": provider.value, "variables": sorted(env)})

        run_stage(run_dir, "init", env, binary).raise_for_status(env)
        self._advance(run_dir, Stage.INITIALIZED, "Terraform initialized")

        run_stage(run_dir, "plan", env, binary, plan_vars=plan_vars).raise_for_status(env)
        self._advance(run_dir, Stage.PLANNED, "Terraform plan created")

        run_stage(run_dir, "apply", env, binary).raise_for_status(env)
        self._advance(run_dir, Stage.APPLIED, "Infrastructure provisioned")

        outputs = self._read_outputs(run_dir, env, binary)
        url, public_ip = endpoint_from_outputs(outputs, plan.app_port)
        self._advance(run_dir, Stage.OUTPUTS_READ, f"Deployment URL: {url}", EventTypes.OUTPUTS_READ,
                      outputs=sorted(outputs))

        self._advance(run_dir, Stage.DONE, "Deployment complete", EventTypes.DONE)
        return self._result(plan, run_dir, url, public_ip)

    def _read_outputs(self, run_dir: Path, env: Mapping[str, str], binary: str) -> Dict[str, Any]:
        result = run_stage(run_dir, "output", env, binary)
        if not result.ok:
            logger.warning("terraform output failed (exit %d); endpoint unknown", result.returncode)
            return {}
        try:
            return parse_outputs(result.stdout)
        except (ValueError, json.JSONDecodeError) as e:
            logger.warning("Could not parse terraform outputs: %s", e)
            return {}


def provision(
    plan: DeploymentPlan,
    repository_reference: str,
    dry_run: bool,
    provider: Optional[CloudProvider],
    settings: Settings,
    credentials: CredentialStore,
) -> DeploymentResult:
    """
    Render ``plan`` into a fresh run directory and, unless ``dry_run``, drive
    terraform through init, plan, apply and output.

    Raises:
        ToolingMissing: terraform is not on PATH
        CredentialMissing: no credential record for the provider
        ExternalProcessFailure: a terraform stage exited non-zero
        SerializationError: the plan cannot be rendered
    """
    return Provisioner(settings, credentials).run(plan, repository_reference, dry_run, provider)
