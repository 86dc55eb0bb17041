from __future__ import annotations

import uuid

from simple_cicd.errors import ConfigError
from simple_cicd.models import (
    DEFAULT_BRANCH,
    AmbientContext,
    PipelineConfig,
    ResolvedConfig,
    SourceType,
)
from simple_cicd.utils import get_logger

logger = get_logger(__name__)

PLACEHOLDER_REPO_PREFIX = "my-cloudmod-repo-"


def placeholder_repository_name() -> str:
    # 64 random bits
    return PLACEHOLDER_REPO_PREFIX + uuid.uuid4().hex[:16]


def resolve_config(config: PipelineConfig, ambient: AmbientContext | None = None) -> ResolvedConfig:
    """Apply defaults and derived names to a partially specified config.

    Unknown source types are passed through untouched; the topology builder
    rejects them.
    """
    ambient = ambient or AmbientContext()
    source_type = SourceType.coerce(config.source_type) or SourceType.CODECOMMIT

    if source_type == SourceType.GITHUB:
        missing = [
            name
            for name, value in (
                ("account_owner", config.account_owner),
                ("oauth_secret_arn", config.oauth_secret_arn),
                ("repository_name", config.repository_name),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"GitHub sources require {', '.join(missing)}")

    repository_name = config.repository_name or ""
    if not repository_name and source_type == SourceType.CODECOMMIT:
        if not config.create_repository:
            raise ConfigError("repository_name is required to look up an existing repository")
        repository_name = placeholder_repository_name()
        logger.info("resolver: generated repository name=%s", repository_name)

    resolved = ResolvedConfig(
        source_type=source_type,
        repository_name=repository_name,
        branch_name=config.branch_name or DEFAULT_BRANCH,
        create_repository=bool(config.create_repository),
        stack_name=config.stack_name or ambient.stack_name,
        needs_app_delivery=bool(config.needs_app_delivery),
        ambient=ambient,
        account_owner=config.account_owner,
        oauth_secret_arn=config.oauth_secret_arn,
        pipeline_name=config.pipeline_name,
        delivery_bucket_arn=config.delivery_bucket_arn,
    )
    logger.info(
        "resolver: source=%s repo=%s branch=%s stack=%s delivery=%s",
        getattr(source_type, "value", source_type),
        resolved.repository_name,
        resolved.branch_name,
        resolved.stack_name,
        resolved.needs_app_delivery,
    )
    return resolved
