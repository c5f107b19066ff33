import re
from datetime import datetime
from pathlib import Path

from autodeploy.envman.redact import MASK, redact_dict, redact_values
from autodeploy.events import emit_event, read_events
from autodeploy.ids import new_run_id
from autodeploy.settings import Settings


def test_settings_from_env():
    settings = Settings.from_env({
        "AUTODEPLOY_OUTPUT_DIR": "/tmp/runs",
        "AUTODEPLOY_NLP_PROVIDER": "Gemini",
        "AUTODEPLOY_NLP_TIMEOUT": "12.5",
        "GEMINI_API_KEY": "g-key",
        "OPENAI_API_KEY": "",
    })
    assert settings.output_root == Path("/tmp/runs")
    assert settings.nlp_provider == "gemini"
    assert settings.nlp_timeout_s == 12.5
    assert settings.gemini_api_key == "g-key"
    assert settings.openai_api_key is None
    assert settings.terraform_binary == "terraform"


def test_settings_overrides_ignore_none():
    settings = Settings().with_overrides(output_root=Path("x"), nlp_provider=None)
    assert settings.output_root == Path("x")
    assert settings.nlp_provider == "mock"


def test_run_ids():
    run_id = new_run_id(datetime(2024, 3, 4, 5, 6, 7))
    assert re.match(r"^deployment_20240304_050607_[a-z0-9]{4}$", run_id)


def test_events_round_trip(tmp_path):
    emit_event(tmp_path, "RENDERED", {"files": ["main.tf"]})
    with open(tmp_path/"events.ndjson", "a") as f:
        f.write("not json\n")
    emit_event(tmp_path, "DONE", {})
    events = read_events(tmp_path)
    assert [e["type"] for e in events] == ["RENDERED", "DONE"]
    assert events[0]["data"] == {"files": ["main.tf"]}


def test_redaction():
    assert redact_dict({"A": "1"}) == {"A": MASK}
    assert redact_values("token is hunter22 ok", {"PW": "hunter22", "X": "ab"}) == f"token is {MASK} ok"
