"""
Terraform wrapper functions for deployment orchestration.
"""

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .envman.redact import redact_values
from .errors import ExternalProcessFailure, ToolingMissing
from .events import EventTypes, emit_event

logger = logging.getLogger(__name__)

LOG_FILE = "terraform.log"
PLAN_FILE = "tfplan"

STAGE_EVENTS = {
    "init": EventTypes.TF_INIT,
    "plan": EventTypes.TF_PLAN,
    "apply": EventTypes.TF_APPLY,
    "output": EventTypes.TF_OUTPUT,
}


@dataclass(frozen=True)
class StageResult:
    stage: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def raise_for_status(self, secrets: Optional[Mapping[str, str]] = None) -> "StageResult":
        if not self.ok:
            detail = redact_values(self.stderr or self.stdout, secrets or {})
            raise ExternalProcessFailure(self.stage, self.returncode, detail)
        return self


def stage_args(stage: str, plan_vars: Optional[Mapping[str, str]] = None) -> List[str]:
    if stage == "init":
        return ["init", "-input=false", "-no-color"]
    if stage == "plan":
        args = ["plan", "-input=false", "-no-color", f"-out={PLAN_FILE}"]
        for name, value in (plan_vars or {}).items():
            args += ["-var", f"{name}={value}"]
        return args
    if stage == "apply":
        return ["apply", "-input=false", "-no-color", "-auto-approve", PLAN_FILE]
    if stage == "output":
        return ["output", "-json"]
    raise ValueError(f"Unknown terraform stage: {stage}")


def run_stage(
    run_dir: Path,
    stage: str,
    env: Mapping[str, str],
    binary: str = "terraform",
    plan_vars: Optional[Mapping[str, str]] = None,
) -> StageResult:
    """
    Run one terraform subcommand in ``run_dir``.

    Credential variables in ``env`` are added to this subprocess only. Its
    stdout and stderr are appended to terraform.log with those values masked.

    Raises:
        ToolingMissing: the binary disappeared between the PATH check and the call
    """
    command = [binary] + stage_args(stage, plan_vars)
    logger.info("Running terraform %s in %s", stage, run_dir)
    try:
        proc = subprocess.run(
            command,
            cwd=str(run_dir),
            env={**os.environ, **env},
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        raise ToolingMissing(binary)

    result = StageResult(stage, proc.returncode, proc.stdout or "", proc.stderr or "")
    with open(Path(run_dir) / LOG_FILE, "a") as log_file:
        log_file.write(f"=== {' '.join(command)} (exit {result.returncode}) ===\n")
        if result.stdout:
            log_file.write(redact_values(result.stdout, env).rstrip() + "\n")
        if result.stderr:
            log_file.write(redact_values(result.stderr, env).rstrip() + "\n")

    if result.ok:
        emit_event(run_dir, STAGE_EVENTS.get(stage, stage.upper()), {"returncode": 0})
    else:
        last_lines = redact_values(result.stderr or result.stdout, env).splitlines()[-40:]
        emit_event(run_dir, EventTypes.ERROR, {
            "reason": f"terraform {stage} failed",
            "returncode": result.returncode,
            "hint": "Check terraform.log for details",
            "last_lines": last_lines,
        })
    return result


def parse_outputs(stdout: str) -> Dict[str, Any]:
    """Flatten ``terraform output -json`` into name -> value."""
    data = json.loads(stdout or "{}")
    if not isinstance(data, dict):
        raise ValueError("terraform output is not a JSON object")
    return {
        name: (item.get("value") if isinstance(item, dict) else item)
        for name, item in data.items()
    }
