from __future__ import annotations

from simple_cicd.errors import UnsupportedSourceType
from simple_cicd.models import (
    Artifact,
    GitHubBinding,
    RepositoryBinding,
    ResolvedConfig,
    SecretReference,
    SourceBinding,
    SourceFetchAction,
    SourceType,
)
from simple_cicd.utils import get_logger, redact_secrets

logger = get_logger(__name__)

STAGE_NAME = "Staging"
REPOSITORY_DESCRIPTION = "Repository created using CloudMod"
GITHUB_TOKEN_FIELD = "github-access-token"


def bind_source(cfg: ResolvedConfig) -> SourceBinding:
    """Resolve the single source binding for the pipeline.

    Raises UnsupportedSourceType for anything but CodeCommit or GitHub.
    """
    if cfg.source_type == SourceType.CODECOMMIT:
        if cfg.create_repository:
            logger.info("source.codecommit: declaring repository=%s", cfg.repository_name)
            return RepositoryBinding(
                repository_name=cfg.repository_name,
                created=True,
                description=REPOSITORY_DESCRIPTION,
            )
        logger.info("source.codecommit: using existing repository=%s", cfg.repository_name)
        return RepositoryBinding(repository_name=cfg.repository_name, created=False)

    if cfg.source_type == SourceType.GITHUB:
        logger.info(
            "source.github: owner=%s repo=%s token=%s",
            cfg.account_owner,
            cfg.repository_name,
            redact_secrets(cfg.oauth_secret_arn or ""),
        )
        return GitHubBinding(
            owner=cfg.account_owner,
            repo=cfg.repository_name,
            branch=cfg.branch_name,
            oauth_token=SecretReference(secret_arn=cfg.oauth_secret_arn, json_field=GITHUB_TOKEN_FIELD),
        )

    raise UnsupportedSourceType(cfg.source_type)


def source_action(binding: SourceBinding, branch: str, output: Artifact) -> SourceFetchAction:
    if isinstance(binding, RepositoryBinding):
        name = "CodeCommitSource"
    elif isinstance(binding, GitHubBinding):
        name = "GitHubSource"
    else:
        raise UnsupportedSourceType(type(binding).__name__)
    return SourceFetchAction(action_name=name, source=binding, branch=branch, outputs=(output,))
