import pytest

from simple_cicd.errors import ConfigError
from simple_cicd.models import AmbientContext, PipelineConfig, SourceType
from simple_cicd.resolver import PLACEHOLDER_REPO_PREFIX, resolve_config


def test_resolve_defaults():
    ambient = AmbientContext(account_id="123456789012", region="eu-west-1", stack_name="ambient-stack")
    r = resolve_config(PipelineConfig(repository_name="app"), ambient)
    assert r.source_type == SourceType.CODECOMMIT
    assert r.branch_name == "master"
    assert r.stack_name == "ambient-stack"
    assert r.create_repository is True
    assert r.needs_app_delivery is False
    assert r.ambient is ambient


def test_resolve_default_ambient_uses_pseudo_parameters():
    r = resolve_config(PipelineConfig(repository_name="app"))
    assert r.stack_name == "${AWS::StackName}"
    assert r.ambient.region == "${AWS::Region}"


def test_placeholder_repository_name_is_unique():
    a = resolve_config(PipelineConfig())
    b = resolve_config(PipelineConfig())
    assert a.repository_name.startswith(PLACEHOLDER_REPO_PREFIX)
    assert len(a.repository_name) > len(PLACEHOLDER_REPO_PREFIX)
    assert a.repository_name != b.repository_name


def test_existing_repository_requires_name():
    with pytest.raises(ConfigError):
        resolve_config(PipelineConfig(create_repository=False))


def test_source_type_strings_are_normalized():
    r = resolve_config(
        PipelineConfig(source_type="GitHub", repository_name="app", account_owner="me", oauth_secret_arn="arn:x")
    )
    assert r.source_type is SourceType.GITHUB


@pytest.mark.parametrize(
    "owner,arn",
    [(None, "arn:aws:secretsmanager:us-east-1:1:secret:t"), ("octocat", None), (None, None), ("", "arn:x")],
)
def test_github_requires_owner_and_secret(owner, arn):
    cfg = PipelineConfig(source_type="github", repository_name="app", account_owner=owner, oauth_secret_arn=arn)
    with pytest.raises(ConfigError):
        resolve_config(cfg)


def test_unknown_source_type_passes_through():
    r = resolve_config(PipelineConfig(source_type="bitbucket", repository_name="app"))
    assert r.source_type == "bitbucket"
