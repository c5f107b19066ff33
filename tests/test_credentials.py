import json
import logging
import tempfile
from pathlib import Path

import pytest

from autodeploy.credentials import CredentialStore
from autodeploy.errors import CredentialMissing
from autodeploy.nlp.schema import CloudProvider


CREDS = {
    "aws": {"access_key_id": "AKIAEXAMPLE", "secret_access_key": "aws-secret-value", "region": "eu-west-1"},
    "gcp": {"service_account_key": '{"type": "service_account"}', "project_id": "demo-project"},
    "digitalocean": {"region": "ams3"},
}


def write_store(data):
    td = tempfile.mkdtemp()
    path = Path(td)/"credentials.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


def test_load_valid_and_invalid_sections(caplog):
    path = write_store(CREDS)
    with caplog.at_level(logging.WARNING):
        store = CredentialStore.load(path)
    assert store.configured_providers() == [CloudProvider.AWS, CloudProvider.GCP]
    assert CloudProvider.DIGITALOCEAN not in store.configured_providers()
    assert "digitalocean" in caplog.text
    assert "token" in caplog.text
    assert "ams3" not in caplog.text


def test_aws_env_and_plan_vars():
    store = CredentialStore.load(write_store(CREDS))
    assert store.env_for(CloudProvider.AWS) == {
        "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
        "AWS_SECRET_ACCESS_KEY": "aws-secret-value",
        "AWS_DEFAULT_REGION": "eu-west-1",
    }
    assert store.plan_vars(CloudProvider.AWS) == {"region": "eu-west-1"}


def test_gcp_env_and_plan_vars():
    store = CredentialStore.load(write_store(CREDS))
    env = store.env_for(CloudProvider.GCP)
    assert env["GOOGLE_CREDENTIALS"] == '{"type": "service_account"}'
    assert env["GOOGLE_PROJECT"] == "demo-project"
    assert store.plan_vars(CloudProvider.GCP) == {
        "project_id": "demo-project", "region": "us-central1", "zone": "us-central1-a",
    }


def test_missing_provider_has_setup_hint():
    path = write_store(CREDS)
    store = CredentialStore.load(path)
    with pytest.raises(CredentialMissing) as exc:
        store.env_for(CloudProvider.AZURE)
    assert exc.value.provider == "Azure"
    assert '"azure"' in exc.value.setup_hint
    assert "client_id" in exc.value.setup_hint
    assert str(path) in exc.value.setup_hint


def test_missing_file_is_empty():
    store = CredentialStore.load(Path(tempfile.mkdtemp())/"nope.json")
    assert store.configured_providers() == []


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_unreadable_file_is_empty(content):
    assert CredentialStore.load(write_store(content)).configured_providers() == []
