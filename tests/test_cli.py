import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from autodeploy.cli.main import main


def last_json(output):
    lines = [line for line in output.splitlines() if line.startswith("{")]
    return json.loads(lines[-1])


def make_repo(root: Path) -> Path:
    repo = root/"repo"
    repo.mkdir()
    (repo/"requirements.txt").write_text("Flask==2.0.1\n")
    (repo/"app.py").write_text("from flask import Flask\napp = Flask(__name__)\n")
    return repo


def base_args(tmp_path):
    return [
        "--output-dir", str(tmp_path/"out"),
        "--credentials", str(tmp_path/"credentials.json"),
        "--nlp-provider", "mock",
    ]


def test_analyze_json(tmp_path):
    repo = make_repo(tmp_path)
    result = CliRunner().invoke(main, base_args(tmp_path) + ["analyze", str(repo), "--json"])
    assert result.exit_code == 0, result.output
    data = last_json(result.output)
    assert data["app_type"] == "Flask"
    assert data["start_commands"] == ["python app.py"]


def test_analyze_missing_repo(tmp_path):
    result = CliRunner().invoke(main, base_args(tmp_path) + ["analyze", str(tmp_path/"nope"), "--json"])
    assert result.exit_code == 1
    assert "error" in last_json(result.output)


def test_plan_json(tmp_path):
    repo = make_repo(tmp_path)
    result = CliRunner().invoke(main, base_args(tmp_path) + [
        "plan", "-d", "Deploy this Flask app on GCP with API_KEY=topsecret", "-r", str(repo), "--json",
    ])
    assert result.exit_code == 0, result.output
    data = last_json(result.output)
    assert data["plan"]["topology"] == "SingleVM"
    assert data["plan"]["provider"] == "GCP"
    assert data["plan"]["instance_size"] == "e2-micro"
    assert "topsecret" not in result.output


def test_cloud_provider_override(tmp_path):
    repo = make_repo(tmp_path)
    result = CliRunner().invoke(main, base_args(tmp_path) + [
        "plan", "-d", "Deploy this Flask app on GCP", "-r", str(repo), "--cloud-provider", "aws", "--json",
    ])
    assert result.exit_code == 0, result.output
    assert last_json(result.output)["plan"]["provider"] == "AWS"


def test_deploy_dry_run(tmp_path):
    repo = make_repo(tmp_path)
    with patch("autodeploy.terraform.subprocess.run") as run:
        result = CliRunner().invoke(main, base_args(tmp_path) + [
            "deploy", "-d", "Deploy this Flask app on AWS", "-r", str(repo), "--dry-run", "--json",
        ])
    assert result.exit_code == 0, result.output
    run.assert_not_called()
    data = last_json(result.output)
    assert data["endpoint_url"] == "dry-run"
    assert data["topology"] == "SingleVM"
    assert (Path(data["output_dir"])/"main.tf").is_file()


def test_deploy_without_credentials_exits_2(tmp_path):
    repo = make_repo(tmp_path)
    with patch("autodeploy.provision.shutil.which", return_value="/usr/bin/terraform"), \
            patch("autodeploy.terraform.subprocess.run") as run:
        result = CliRunner().invoke(main, base_args(tmp_path) + [
            "deploy", "-d", "Deploy this Flask app on AWS", "-r", str(repo), "--json",
        ])
    assert result.exit_code == 2
    run.assert_not_called()
    assert "No credentials found for AWS" in last_json(result.output)["error"]


def test_credentials_status(tmp_path):
    creds = tmp_path/"credentials.json"
    creds.write_text(json.dumps({"digitalocean": {"token": "do-secret-token"}}))
    result = CliRunner().invoke(main, base_args(tmp_path) + ["credentials", "status", "--json"])
    assert result.exit_code == 0, result.output
    data = last_json(result.output)
    assert data["providers"]["digitalocean"] is True
    assert data["providers"]["aws"] is False
    assert "do-secret-token" not in result.output


def test_credentials_status_empty(tmp_path):
    result = CliRunner().invoke(main, base_args(tmp_path) + ["credentials", "status"])
    assert result.exit_code == 2
