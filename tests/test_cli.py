import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from api_test_planner.cli import main
from api_test_planner.errors import ConfigurationError
from api_test_planner.profile.endpoint import derive_endpoint

FIXTURES = Path(__file__).parent / "fixtures"


def _plan(tmp_path, *args, name: str = "plan.json"):
    output = tmp_path / name
    result = CliRunner().invoke(main, ["plan", str(FIXTURES / "petstore.yaml"), "-o", str(output), *args])
    return result, output


class TestCliPlan:
    def test_plan_writes_json(self, tmp_path):
        result, output = _plan(tmp_path, "--seed", "1")

        assert result.exit_code == 0, result.output
        assert "Found 4 endpoints." in result.output
        assert "Test plan saved to" in result.output
        data = json.loads(output.read_text())
        keys = [entry["endpoint"] for entry in data["endpoints"]]
        assert keys == ["GET /pets", "POST /pets", "GET /pets/{petId}", "DELETE /pets/{petId}"]
        delete = data["endpoints"][3]
        assert delete["business_criticality"] == "CRITICAL"
        assert delete["suite"]["test_cases"]
        assert "primary_strategy" in delete["recommendation"]

    def test_seed_makes_plan_reproducible(self, tmp_path):
        _, first = _plan(tmp_path, "--seed", "42", name="a.json")
        _, second = _plan(tmp_path, "--seed", "42", name="b.json")
        assert first.read_text() == second.read_text()

    def test_max_cases(self, tmp_path):
        result, output = _plan(tmp_path, "--seed", "1", "--max-cases", "2")
        assert result.exit_code == 0, result.output
        for entry in json.loads(output.read_text())["endpoints"]:
            cases = entry["suite"]["test_cases"]
            assert len(cases) <= 2
            assert any(c["scenario"] == "happy_path" for c in cases)

    def test_parameter_cases_flag(self, tmp_path):
        result, output = _plan(tmp_path, "--seed", "1", "--parameter-cases")
        assert result.exit_code == 0, result.output
        get_pets = json.loads(output.read_text())["endpoints"][0]
        assert any(c["parameter"] == "limit" for c in get_pets["test_cases"])

    def test_config_file(self, tmp_path):
        config = tmp_path / "planner.yaml"
        config.write_text("include_security: false\nseed: 5\n")
        result, output = _plan(tmp_path, "--config", str(config))
        assert result.exit_code == 0, result.output
        post = json.loads(output.read_text())["endpoints"][1]
        assert not any("security" in c["tags"] for c in post["suite"]["test_cases"])

    def test_bad_config_fails(self, tmp_path):
        config = tmp_path / "planner.yaml"
        config.write_text("unknown_option: 1\n")
        result, _ = _plan(tmp_path, "--config", str(config))
        assert result.exit_code != 0
        assert "invalid settings" in result.output

    def test_bad_document_fails(self, tmp_path):
        doc = tmp_path / "doc.yaml"
        doc.write_text("just: text\n")
        result = CliRunner().invoke(main, ["plan", str(doc), "-o", str(tmp_path / "out.json")])
        assert result.exit_code != 0
        assert "paths" in result.output

    def test_skipped_endpoint_does_not_abort(self, tmp_path):
        def derive(config):
            if config.method == "DELETE":
                raise ConfigurationError("rejected")
            return derive_endpoint(config)

        with patch("api_test_planner.profile.endpoint.derive_endpoint", side_effect=derive):
            result, output = _plan(tmp_path, "--seed", "1")
        assert result.exit_code == 0, result.output
        assert len(json.loads(output.read_text())["endpoints"]) == 3


class TestCliClassify:
    def test_classify_output(self):
        result = CliRunner().invoke(main, ["classify", str(FIXTURES / "petstore.yaml")])
        assert result.exit_code == 0, result.output
        assert "DELETE /pets/{petId}" in result.output
        assert "criticality: CRITICAL" in result.output
        assert "- limit (query)" in result.output
        assert "estimated tests:" in result.output

    def test_malformed_operation_skipped(self, tmp_path):
        doc = tmp_path / "doc.yaml"
        doc.write_text(
            "openapi: 3.0.0\npaths:\n"
            "  /a:\n    get:\n      parameters:\n"
            "        - {name: q, in: query, schema: {type: string, maxLength: 2.5}}\n"
            "  /b:\n    get:\n      responses: {200: {description: ok}}\n"
        )
        result = CliRunner().invoke(main, ["classify", str(doc)])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert "GET /b" in lines
        assert "GET /a" not in lines
