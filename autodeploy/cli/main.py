"""Main CLI entrypoint for autodeploy."""

import json
import logging
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import click

from ..analyzer import analyze
from ..analyzer.fetcher import fetch_repository
from ..analyzer.report import emit_report
from ..credentials import SECTIONS, CredentialStore
from ..errors import AutodeployError, CredentialMissing, ToolingMissing
from ..nlp.schema import CloudProvider
from ..orchestrator import deploy, plan_deployment
from ..settings import Settings

PROVIDER_CHOICES = click.Choice(["aws", "gcp", "azure", "digitalocean"], case_sensitive=False)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option('--output-dir', type=click.Path(path_type=Path), help='Root directory for run directories')
@click.option('--credentials', 'credentials_path', type=click.Path(path_type=Path), help='Credential file')
@click.option('--nlp-provider', type=click.Choice(['mock', 'gemini', 'openai']), help='Text-generation provider')
@click.pass_context
def main(ctx, verbose, output_dir, credentials_path, nlp_provider):
    """autodeploy - describe a deployment, get a running server."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['settings'] = Settings.from_env().with_overrides(
        output_root=output_dir,
        credentials_path=credentials_path,
        nlp_provider=nlp_provider,
    )


def _json_output(data: Dict[str, Any]) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=None))


def _fail(error: Exception, output_json: bool) -> None:
    """Report an error and exit: 2 for missing tooling or configuration, 1 otherwise."""
    if output_json:
        _json_output({'error': str(error)})
    else:
        click.echo(f"❌ {error}", err=True)
    sys.exit(2 if isinstance(error, (CredentialMissing, ToolingMissing)) else 1)


def _provider(value: Optional[str]) -> Optional[CloudProvider]:
    return CloudProvider.parse(value) if value else None


@main.command('analyze')
@click.argument('repo')
@click.option('--report', 'report_dir', type=click.Path(path_type=Path), help='Write repository_profile.json and analysis.md here')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
def analyze_cmd(repo, report_dir, output_json):
    """Analyze a repository (URL or local path)."""
    try:
        with tempfile.TemporaryDirectory(prefix="autodeploy-") as workspace:
            profile = analyze(fetch_repository(repo, workspace))
        if report_dir:
            emit_report(profile, report_dir)
    except (AutodeployError, OSError) as e:
        _fail(e, output_json)
        return

    if output_json:
        _json_output(profile.to_dict())
        return
    click.echo(f"📦 Application type: {profile.app_type.value}")
    click.echo(f"Package manager: {profile.package_manager.value}")
    click.echo(f"Ports: {', '.join(str(p) for p in profile.exposed_ports)}")
    click.echo(f"Docker: {'yes' if profile.docker else 'no'}")
    click.echo(f"Build: {' && '.join(profile.build_commands) or '-'}")
    click.echo(f"Start: {' && '.join(profile.start_commands)}")
    if profile.declared_env_vars:
        click.echo(f"Environment keys: {', '.join(profile.declared_env_vars)}")
    if report_dir:
        click.echo(f"📄 Report written to {report_dir}")


@main.command()
@click.option('--description', '-d', required=True, help='Natural-language deployment description')
@click.option('--repository', '-r', required=True, help='Repository URL or local path')
@click.option('--cloud-provider', type=PROVIDER_CHOICES, help='Override the provider named in the description')
@click.option('--draft/--no-draft', default=False, help='Have the text-generation service draft the resources')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def plan(ctx, description, repository, cloud_provider, draft, output_json):
    """Show the deployment plan without rendering or provisioning."""
    try:
        planned = plan_deployment(
            description, repository, ctx.obj['settings'], _provider(cloud_provider), draft=draft,
        )
    except (AutodeployError, OSError) as e:
        _fail(e, output_json)
        return

    summary = planned.plan.summary()
    if output_json:
        _json_output({
            'plan': summary,
            'requirements': planned.requirements.to_dict(redact=True),
            'profile': planned.profile.to_dict(),
        })
        return
    click.echo(f"🏗️  Topology: {summary['topology']} on {summary['provider']}")
    click.echo(f"Instance size: {summary['instance_size']}")
    click.echo(f"Estimated cost: ${summary['estimated_monthly_cost']:.2f}/month")
    click.echo(f"Resources: {', '.join(summary['resources']) or '-'}")
    click.echo(summary['justification'])


@main.command('deploy')
@click.option('--description', '-d', required=True, help='Natural-language deployment description')
@click.option('--repository', '-r', required=True, help='Repository URL or local path')
@click.option('--cloud-provider', type=PROVIDER_CHOICES, help='Override the provider named in the description')
@click.option('--dry-run', is_flag=True, help='Render Terraform files only')
@click.option('--draft/--no-draft', default=False, help='Have the text-generation service draft the resources')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def deploy_cmd(ctx, description, repository, cloud_provider, dry_run, draft, output_json):
    """Plan, render and provision a deployment."""
    try:
        result = deploy(
            description, repository, ctx.obj['settings'], _provider(cloud_provider),
            dry_run=dry_run, draft=draft,
        )
    except (AutodeployError, OSError) as e:
        _fail(e, output_json)
        return

    if output_json:
        _json_output(result.to_dict())
        return
    for line in result.log_lines:
        click.echo(f"  {line}")
    click.echo(f"🚀 {result.topology_label}: {result.endpoint_url}")
    if result.output_dir:
        click.echo(f"📁 Terraform files: {result.output_dir}")


@main.group()
def credentials():
    """Inspect stored cloud credentials."""


@credentials.command()
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def status(ctx, output_json):
    """Show which providers have credential records (values are never shown)."""
    settings = ctx.obj['settings']
    store = CredentialStore.load(settings.credentials_path)
    present = store.configured_providers()
    configured = {p.tag: p in present for p in SECTIONS}
    if output_json:
        _json_output({'path': str(settings.credentials_path), 'providers': configured})
    else:
        click.echo(f"🔐 Credential file: {settings.credentials_path}")
        for tag, ok in configured.items():
            click.echo(f"  {'✅' if ok else '❌'} {tag}")
    if not present:
        sys.exit(2)


if __name__ == '__main__':
    main()
