import json

import pytest
import yaml

from simple_cicd.errors import ConfigError
from simple_cicd.models import AmbientContext, PipelineConfig
from simple_cicd.orchestrator import build_parser, construct_pipeline, overrides_from_args, run_once
from simple_cicd.rendering import render_md, to_document

AMBIENT = AmbientContext(account_id="123456789012", region="us-east-1", stack_name="ambient")


def test_construct_example_pipeline():
    cfg = PipelineConfig(repository_name="app", create_repository=False, needs_app_delivery=True, stack_name="prod")
    cicd = construct_pipeline(cfg, AMBIENT)
    assert cicd.pipeline.stage_names == ["Staging", "BuildInfra", "Deploy", "Delivery"]
    assert cicd.pipeline.get_stage("Deploy").actions[0].stack_name == "prod"
    env = {v.name: v.value for v in cicd.delivery_project.environment_variables}
    assert env == {"STACK_NAME": "prod"}
    describe = cicd.delivery_project.role.grants[0]
    assert [r.split(":", 5)[-1] for r in describe.resources] == ["stack/prod", "stack/prod/*"]


def test_construct_github_without_owner_fails():
    cfg = PipelineConfig(source_type="github", repository_name="app", account_owner=None, oauth_secret_arn="arn:aws:x")
    with pytest.raises(ConfigError):
        construct_pipeline(cfg, AMBIENT)


def test_construct_from_dict_validates_schema():
    doc = {"source": {"type": "github", "repository_name": "app", "oauth_secret_arn": "arn:aws:x"}}
    with pytest.raises(ConfigError, match="Config validation error"):
        construct_pipeline(doc, AMBIENT)
    with pytest.raises(ConfigError):
        construct_pipeline({"source": {"repository_name": "app"}, "unexpected": 1}, AMBIENT)


def test_construct_from_dict():
    doc = {"stack_name": "prod", "source": {"repository_name": "app", "branch_name": "main"}, "delivery": {"enabled": False}}
    cicd = construct_pipeline(doc, AMBIENT)
    assert cicd.pipeline.stage_names == ["Staging", "BuildInfra", "Deploy"]
    assert cicd.pipeline.stages[0].actions[0].branch == "main"


def test_document_and_markdown():
    cfg = PipelineConfig(
        source_type="github",
        repository_name="app",
        account_owner="octocat",
        oauth_secret_arn="arn:aws:secretsmanager:us-east-1:123456789012:secret:gh",
        needs_app_delivery=True,
        stack_name="prod",
        pipeline_name="app-pipeline",
    )
    doc = to_document(construct_pipeline(cfg, AMBIENT))
    json.dumps(doc)
    assert doc["pipeline"]["stage_names"] == ["Staging", "BuildInfra", "Deploy", "Delivery"]
    source = doc["pipeline"]["stages"][0]["actions"][0]
    assert source["provider"] == "GitHub"
    assert source["oauth_token"].endswith(":SecretString:github-access-token}}")
    deploy = doc["pipeline"]["stages"][2]["actions"][0]
    assert deploy["template_path"] == "InfraDefinition::template.yaml"
    assert deploy["capabilities"] == ["CAPABILITY_IAM"]
    assert len(doc["delivery_project"]["role"]["grants"]) == 3

    md = render_md(doc)
    assert md.startswith("# app-pipeline")
    assert "DeliverApp" in md
    assert "`STACK_NAME=prod`" in md


def test_run_once_writes_outputs(tmp_path):
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text(
        yaml.safe_dump({
            "stack_name": "prod",
            "source": {"repository_name": "app", "create_repository": False},
            "output": {"dir": str(tmp_path / "out"), "formats": ["json", "md"]},
        }),
        encoding="utf-8",
    )
    files = run_once(str(config_path), overrides={"needs_app_delivery": True, "formats": ["json", "yaml"]}, ambient=AMBIENT)
    assert sorted(p.rsplit(".", 1)[-1] for p in files) == ["json", "yaml"]
    json_path = [p for p in files if p.endswith(".json")][0]
    with open(json_path, encoding="utf-8") as f:
        doc = json.load(f)
    assert doc["pipeline"]["stage_names"][-1] == "Delivery"


def test_run_once_propagates_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_once(str(tmp_path / "missing.yaml"), ambient=AMBIENT)


def test_parser_overrides():
    args = build_parser().parse_args(["--config", "c.yaml", "--no-delivery", "--branch", "dev", "--format", "md"])
    overrides = overrides_from_args(args)
    assert overrides["needs_app_delivery"] is False
    assert overrides["create_repository"] is None
    assert overrides["branch_name"] == "dev"
    assert overrides["formats"] == ["md"]


def test_construct_from_empty_dict_uses_defaults():
    cicd = construct_pipeline({}, AMBIENT)
    assert cicd.pipeline.stage_names == ["Staging", "BuildInfra", "Deploy"]
    assert cicd.source_binding.repository_name.startswith("my-cloudmod-repo-")


def test_run_once_override_fixes_incomplete_github_file(tmp_path):
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text(
        yaml.safe_dump({
            "source": {"type": "github", "repository_name": "app", "oauth_secret_arn": "arn:aws:x"},
            "output": {"dir": str(tmp_path / "out")},
        }),
        encoding="utf-8",
    )
    with pytest.raises(ConfigError):
        run_once(str(config_path), ambient=AMBIENT)
    files = run_once(str(config_path), overrides={"source_type": "codecommit"}, ambient=AMBIENT)
    with open(files[0], encoding="utf-8") as f:
        doc = json.load(f)
    assert doc["pipeline"]["stages"][0]["actions"][0]["provider"] == "CodeCommit"
