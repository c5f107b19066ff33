import pytest

from autodeploy.analyzer.profile import DockerConfig, PackageManager, RepositoryProfile
from autodeploy.errors import ExtractionFailure
from autodeploy.generator.validate import check_references
from autodeploy.nlp.schema import AppType, CloudProvider, RequirementModel, ScalingMode
from autodeploy.selector.plan import DraftConfig, Resource, Topology
from autodeploy.selector.blueprints import bootstrap_script
from autodeploy.selector.rules import format_cost
from autodeploy.selector.select import build_plan, decide


REPO = "https://github.com/example/app"


def make_profile(**kw):
    kw.setdefault("app_type", AppType.FLASK)
    kw.setdefault("package_manager", PackageManager.PIP)
    return RepositoryProfile.build(**kw)


def make_requirements(**kw):
    kw.setdefault("cloud_provider", CloudProvider.AWS)
    return RequirementModel(**kw)


@pytest.mark.parametrize("provider", list(CloudProvider))
def test_serverless_override_wins(provider):
    profile = make_profile(docker=DockerConfig(dockerfile_path="Dockerfile"))
    decision = decide(make_requirements(cloud_provider=provider, scaling_mode=ScalingMode.SERVERLESS), profile)
    assert decision.topology == Topology.SERVERLESS
    assert decision.instance_size == "lambda"
    assert decision.estimated_monthly_cost == 5.0


def test_load_balanced_is_orchestrated():
    profile = make_profile(docker=DockerConfig(dockerfile_path="Dockerfile"))
    decision = decide(make_requirements(scaling_mode=ScalingMode.LOADBALANCED), profile)
    assert decision.topology == Topology.ORCHESTRATED
    assert decision.instance_size == "t3.medium"
    assert decision.estimated_monthly_cost == 73.0


def test_unbuilt_frontend_is_static_site():
    profile = RepositoryProfile(app_type=AppType.REACT, package_manager=PackageManager.NPM)
    decision = decide(make_requirements(), profile)
    assert decision.topology == Topology.STATIC_SITE
    assert decision.instance_size == "static-hosting"
    assert decision.estimated_monthly_cost == 1.0


def test_built_frontend_is_not_static_site():
    profile = make_profile(app_type=AppType.REACT, package_manager=PackageManager.NPM)
    assert profile.requires_build
    assert decide(make_requirements(), profile).topology == Topology.SINGLE_VM


def test_docker_repo_gets_container_service():
    profile = make_profile(docker=DockerConfig(dockerfile_path="Dockerfile", exposed_ports=(8080,)))
    decision = decide(make_requirements(), profile)
    assert decision.topology == Topology.CONTAINER_SERVICE
    assert decision.instance_size == "t3.small"
    assert decision.estimated_monthly_cost == 25.0


@pytest.mark.parametrize("provider,size,cost", [
    (CloudProvider.AWS, "t3.micro", 8.76),
    (CloudProvider.GCP, "e2-micro", 5.32),
    (CloudProvider.AZURE, "Standard_B1s", 10.0),
    (CloudProvider.DIGITALOCEAN, "s-1vcpu-1gb", 10.0),
    (CloudProvider.UNKNOWN, "smallest-general-purpose", 10.0),
])
def test_single_vm_sizes_and_costs(provider, size, cost):
    decision = decide(make_requirements(cloud_provider=provider), make_profile())
    assert decision.topology == Topology.SINGLE_VM
    assert decision.instance_size == size
    assert decision.estimated_monthly_cost == cost


def test_justification_names_app_and_cost():
    decision = decide(make_requirements(), make_profile())
    assert "Flask" in decision.justification
    assert "$8.76/month" in decision.justification


def test_justification_uses_requested_app_when_repo_unknown():
    profile = RepositoryProfile.build()
    decision = decide(make_requirements(application_type=AppType.DJANGO), profile)
    assert "Django" in decision.justification


def test_format_cost():
    assert format_cost(5) == "$5.00/month"
    assert format_cost(8.76) == "$8.76/month"


def test_every_combination_yields_one_topology():
    for scaling in ScalingMode:
        for app_type in AppType:
            for docker in (None, DockerConfig(dockerfile_path="Dockerfile")):
                profile = make_profile(app_type=app_type, docker=docker)
                decision = decide(make_requirements(scaling_mode=scaling), profile)
                assert isinstance(decision.topology, Topology)
                if scaling == ScalingMode.SERVERLESS:
                    assert decision.topology == Topology.SERVERLESS
                elif scaling == ScalingMode.LOADBALANCED:
                    assert decision.topology == Topology.ORCHESTRATED


@pytest.mark.parametrize("provider", [
    CloudProvider.AWS, CloudProvider.GCP, CloudProvider.AZURE, CloudProvider.DIGITALOCEAN,
])
def test_builtin_blueprint_is_self_consistent(provider):
    plan = build_plan(make_requirements(cloud_provider=provider), make_profile(), repository_reference=REPO)
    assert plan.resource_graph
    assert not plan.drafted
    assert plan.app_port == 5000
    assert check_references(plan.resource_graph, plan.variables, provider, plan.outputs) == set()
    scripts = [
        v for r in plan.resource_graph for k, v in r.attributes.items()
        if k in ("user_data", "metadata_startup_script", "custom_data")
    ]
    assert len(scripts) == 1
    assert f"git clone --depth 1 {REPO} /opt/app" in scripts[0]
    assert "nohup python app.py" in scripts[0]


def test_aws_blueprint_opens_requested_ports():
    plan = build_plan(make_requirements(ports=(8080,)), make_profile(), repository_reference=REPO)
    by_type = {r.type: r for r in plan.resource_graph}
    ingress = by_type["aws_security_group"].attributes["ingress"]
    assert [rule["from_port"] for rule in ingress] == [22, 5000, 8080]
    assert by_type["aws_instance"].attributes["instance_type"] == "t3.micro"
    assert "ami_id" in plan.variables
    assert "instance_ip" in plan.outputs


def test_container_blueprint_runs_docker():
    profile = make_profile(docker=DockerConfig(dockerfile_path="Dockerfile", exposed_ports=(8080,)))
    plan = build_plan(make_requirements(), profile, repository_reference=REPO)
    script = next(r for r in plan.resource_graph if r.type == "aws_instance").attributes["user_data"]
    assert "docker build -t app ." in script
    assert "-p 8080:8080" in script


def test_serverless_has_no_builtin_graph():
    plan = build_plan(make_requirements(scaling_mode=ScalingMode.SERVERLESS), make_profile())
    assert plan.topology == Topology.SERVERLESS
    assert plan.resource_graph == ()


def test_unknown_provider_has_no_builtin_graph():
    plan = build_plan(make_requirements(cloud_provider=CloudProvider.UNKNOWN), make_profile())
    assert plan.resource_graph == ()


def test_env_values_never_reach_script():
    requirements = make_requirements(env_vars={"SECRET_KEY": "s3cr3t-value"})
    plan = build_plan(requirements, make_profile(), repository_reference=REPO)
    for resource in plan.resource_graph:
        assert "s3cr3t-value" not in repr(resource.attributes)


def test_draft_is_used_when_valid():
    draft = DraftConfig(
        resources=(Resource("aws_instance", "web", {"ami": "var.ami", "instance_type": "t3.micro"}),),
        variables={"ami": {"type": "string"}},
        outputs={"instance_ip": {"value": "aws_instance.web.public_ip"}},
    )
    plan = build_plan(make_requirements(), make_profile(), draft=draft)
    assert plan.drafted
    assert [r.address for r in plan.resource_graph] == ["aws_instance.web"]
    assert plan.topology == Topology.SINGLE_VM


def test_draft_with_undeclared_variable_is_rejected():
    draft = DraftConfig(
        resources=(Resource("aws_instance", "web", {"ami": "var.ami_id", "subnet_id": "var.subnet"}),),
        variables={"ami_id": {"type": "string"}},
    )
    with pytest.raises(ExtractionFailure) as exc:
        build_plan(make_requirements(), make_profile(), draft=draft)
    assert "subnet" in str(exc.value)


def test_draft_region_is_a_wrapper_input():
    draft = DraftConfig(resources=(Resource("aws_s3_bucket", "site", {"bucket": "${var.region}-site"}),))
    plan = build_plan(make_requirements(), make_profile(), draft=draft)
    assert plan.drafted


def test_repository_reference_is_shell_quoted():
    script = bootstrap_script(make_profile(), "https://x/y; rm -rf /")
    assert "git clone --depth 1 'https://x/y; rm -rf /' /opt/app" in script
    assert f"git clone --depth 1 {REPO} /opt/app" in bootstrap_script(make_profile(), REPO)
