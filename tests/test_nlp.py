"""
Tests for requirement extraction and drafting.
"""

import json
import logging
from unittest.mock import Mock, patch

import pytest
import requests

from autodeploy.errors import ExtractionFailure
from autodeploy.nlp import draft_config, extract_json_span, extract_requirements
from autodeploy.nlp.providers import GeminiProvider, MockProvider, OpenAIProvider, TextGenerator, get_provider
from autodeploy.nlp.schema import AppType, CloudProvider, DatabaseType, ScalingMode
from autodeploy.selector.plan import Resource, Topology
from autodeploy.settings import Settings


VALID = {
    "application_type": "Flask",
    "scaling_requirements": "Single",
    "database_requirements": ["postgres"],
    "cloud_provider": "aws",
    "port_requirements": [8080],
    "ssl_required": True,
    "custom_domain": "null",
    "environment_variables": {"DEBUG": False, "WORKERS": 4},
}


class FakeGenerator(TextGenerator):
    """Returns a canned reply and remembers the prompt."""

    def __init__(self, reply):
        super().__init__()
        self.reply = reply
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return self.reply


class TestJsonSpan:
    def test_fenced_reply(self):
        assert extract_json_span('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_surrounding_prose(self):
        assert extract_json_span('Here you go: {"a": {"b": 2}} hope it helps') == '{"a": {"b": 2}}'

    def test_no_object(self):
        with pytest.raises(ExtractionFailure):
            extract_json_span("I cannot help with that.")


class TestExtraction:
    def test_valid_reply(self):
        generator = FakeGenerator("```json\n" + json.dumps(VALID) + "\n```")
        model = extract_requirements("Deploy my app", generator)
        assert model.cloud_provider == CloudProvider.AWS
        assert model.application_type == AppType.FLASK
        assert model.scaling_mode == ScalingMode.SINGLE
        assert model.databases == frozenset({DatabaseType.POSTGRESQL})
        assert model.ports == (8080,)
        assert model.ssl_required is True
        assert model.custom_domain is None
        assert model.env_vars == {"DEBUG": "false", "WORKERS": "4"}
        assert 'Description: """Deploy my app"""' in generator.prompts[0]

    @pytest.mark.parametrize("reply", [
        "no json here",
        '{"application_type": }',
        json.dumps(dict(VALID, port_requirements=[70000])),
        json.dumps({k: v for k, v in VALID.items() if k != "cloud_provider"}),
        json.dumps(dict(VALID, database_requirements="postgres, redis")),
    ])
    def test_bad_replies_raise(self, reply):
        with pytest.raises(ExtractionFailure):
            extract_requirements("Deploy my app", FakeGenerator(reply))

    def test_mock_provider_keywords(self):
        model = extract_requirements(
            "Deploy this Flask app on AWS with PostgreSQL, port 8080, https, domain: example.com",
            MockProvider(),
        )
        assert model.cloud_provider == CloudProvider.AWS
        assert model.application_type == AppType.FLASK
        assert model.databases == frozenset({DatabaseType.POSTGRESQL})
        assert model.ports == (8080,)
        assert model.ssl_required is True
        assert model.custom_domain == "example.com"

    def test_mock_provider_leaves_provider_unknown(self):
        model = extract_requirements("Deploy my django app", MockProvider())
        assert model.cloud_provider == CloudProvider.UNKNOWN
        assert model.application_type == AppType.DJANGO
        assert model.ports == (80, 443)

    def test_mock_provider_serverless(self):
        assert extract_requirements("Run it serverless on AWS", MockProvider()).scaling_mode == ScalingMode.SERVERLESS

    def test_env_values_redacted_in_dict(self):
        model = extract_requirements("Deploy on GCP with API_KEY=supersecret", MockProvider())
        assert model.env_vars == {"API_KEY": "supersecret"}
        assert model.to_dict()["env_vars"] == {"API_KEY": "[REDACTED]"}
        assert "supersecret" not in json.dumps(model.to_dict())

    def test_with_provider(self):
        model = extract_requirements("Deploy my flask app", MockProvider())
        assert model.with_provider(CloudProvider.GCP).cloud_provider == CloudProvider.GCP
        assert model.cloud_provider == CloudProvider.UNKNOWN


class TestParse:
    @pytest.mark.parametrize("text,expected", [
        ("aws", CloudProvider.AWS),
        ("Google Cloud", CloudProvider.GCP),
        ("Microsoft Azure", CloudProvider.AZURE),
        ("Digital Ocean", CloudProvider.DIGITALOCEAN),
        ("mars", CloudProvider.UNKNOWN),
        (None, CloudProvider.UNKNOWN),
    ])
    def test_cloud_provider(self, text, expected):
        assert CloudProvider.parse(text) == expected

    def test_app_type_and_scaling(self):
        assert AppType.parse("next.js") == AppType.NEXTJS
        assert AppType.parse("Ruby on Rails") == AppType.RAILS
        assert AppType.parse("cobol") == AppType.UNKNOWN
        assert ScalingMode.parse("auto-scaling") == ScalingMode.AUTOSCALE
        assert ScalingMode.parse("whatever") == ScalingMode.SINGLE
        assert DatabaseType.parse("oracle") is None


class TestDraft:
    def test_draft_with_aliases_and_shorthand(self):
        reply = json.dumps({
            "provider": "aws",
            "resources": [{"type": "aws_instance", "name": "web", "attributes": {"ami": "var.ami"}}],
            "variables": {"ami": "AMI id"},
            "outputs": {"ip": "aws_instance.web.public_ip"},
        })
        generator = FakeGenerator(reply)
        draft = draft_config("Deploy my flask app", CloudProvider.AWS, Topology.SINGLE_VM, generator)
        assert draft.resources == (Resource("aws_instance", "web", {"ami": "var.ami"}),)
        assert draft.variables == {"ami": {"description": "AMI id"}}
        assert draft.outputs == {"ip": {"value": "aws_instance.web.public_ip"}}
        assert generator.prompts[0].startswith("Generate a Terraform configuration")
        assert "Cloud Provider: AWS" in generator.prompts[0]

    def test_draft_without_resources_raises(self):
        with pytest.raises(ExtractionFailure):
            draft_config("x", CloudProvider.AWS, Topology.SINGLE_VM, FakeGenerator('{"variables": {}}'))

    def test_mock_cannot_draft(self):
        with pytest.raises(ExtractionFailure):
            draft_config("Deploy my flask app", CloudProvider.AWS, Topology.SINGLE_VM, MockProvider())


class TestRestProviders:
    def test_gemini_success(self):
        response = Mock(status_code=200)
        response.json.return_value = {"candidates": [{"content": {"parts": [{"text": '{"a": 1}'}]}}]}
        with patch("autodeploy.nlp.providers.requests.post", return_value=response) as post:
            text = GeminiProvider(api_key="k-123", timeout_s=5).generate("hello")
        assert text == '{"a": 1}'
        url = post.call_args[0][0]
        assert "gemini-2.5-flash:generateContent" in url
        assert post.call_args[1]["headers"]["x-goog-api-key"] == "k-123"
        assert post.call_args[1]["timeout"] == 5

    def test_gemini_http_error(self):
        with patch("autodeploy.nlp.providers.requests.post", return_value=Mock(status_code=500, text="boom")):
            with pytest.raises(ExtractionFailure) as exc:
                GeminiProvider(api_key="k").generate("hello")
        assert "500" in str(exc.value)

    def test_gemini_network_error(self):
        with patch("autodeploy.nlp.providers.requests.post", side_effect=requests.ConnectionError("down")):
            with pytest.raises(ExtractionFailure):
                GeminiProvider(api_key="k").generate("hello")

    def test_missing_key_never_calls_out(self):
        with patch("autodeploy.nlp.providers.requests.post") as post:
            with pytest.raises(ExtractionFailure):
                GeminiProvider().generate("hello")
            with pytest.raises(ExtractionFailure):
                OpenAIProvider().generate("hello")
        post.assert_not_called()

    def test_openai_success(self):
        response = Mock(status_code=200)
        response.json.return_value = {"choices": [{"message": {"content": "{}"}}]}
        with patch("autodeploy.nlp.providers.requests.post", return_value=response) as post:
            text = OpenAIProvider(api_key="sk-1", base_url="http://local/v1/").generate("hi")
        assert text == "{}"
        assert post.call_args[0][0] == "http://local/v1/chat/completions"
        assert post.call_args[1]["headers"]["Authorization"] == "Bearer sk-1"
        assert post.call_args[1]["json"]["model"] == "gpt-4o-mini"

    def test_openai_malformed_body(self):
        response = Mock(status_code=200, text="{}")
        response.json.return_value = {"choices": []}
        with patch("autodeploy.nlp.providers.requests.post", return_value=response):
            with pytest.raises(ExtractionFailure):
                OpenAIProvider(api_key="sk-1").generate("hi")


class TestGetProvider:
    def test_named_providers(self):
        settings = Settings(gemini_api_key="g", openai_api_key="o", nlp_model="m")
        assert isinstance(get_provider(settings, "gemini"), GeminiProvider)
        openai = get_provider(settings, "OpenAI")
        assert isinstance(openai, OpenAIProvider)
        assert openai.model == "m"
        assert isinstance(get_provider(settings), MockProvider)

    def test_unknown_name_falls_back_to_mock(self, caplog):
        with caplog.at_level(logging.WARNING, logger="autodeploy.nlp.providers"):
            provider = get_provider(Settings(nlp_provider="bogus"))
        assert isinstance(provider, MockProvider)
        assert "bogus" in caplog.text
