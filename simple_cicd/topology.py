from __future__ import annotations

from simple_cicd.models import Artifact, Pipeline, ResolvedConfig, SimpleCicd
from simple_cicd.stages import build, delivery, deploy, source
from simple_cicd.utils import get_logger

logger = get_logger(__name__)

SOURCE_ARTIFACT = "SourceCode"
INFRA_ARTIFACT = "InfraDefinition"


def build_topology(cfg: ResolvedConfig) -> SimpleCicd:
    """Assemble the ordered stage list for a resolved config.

    Staging -> BuildInfra -> Deploy, with Delivery appended last when
    requested. The source branch is resolved before anything else is declared,
    so an unsupported source type leaves no partial topology behind.
    """
    binding = source.bind_source(cfg)

    source_artifact = Artifact(SOURCE_ARTIFACT)
    infra_artifact = Artifact(INFRA_ARTIFACT)
    fetch = source.source_action(binding, cfg.branch_name, source_artifact)

    build_project = build.build_project()
    delivery_project = delivery.delivery_project(cfg.stack_name) if cfg.needs_app_delivery else None

    pipeline = Pipeline(pipeline_name=cfg.pipeline_name)
    pipeline.add_stage(source.STAGE_NAME, [fetch])
    pipeline.add_stage(build.STAGE_NAME, [build.build_action(build_project, source_artifact, infra_artifact)])
    pipeline.add_stage(deploy.STAGE_NAME, [deploy.deploy_action(cfg.stack_name, infra_artifact)])

    if delivery_project is not None:
        pipeline.add_stage(delivery.STAGE_NAME, [delivery.delivery_action(delivery_project, source_artifact)])

    logger.info("topology: pipeline=%s stages=%s", cfg.pipeline_name or "<generated>", pipeline.stage_names)
    return SimpleCicd(
        source_binding=binding,
        pipeline=pipeline,
        build_project=build_project,
        delivery_project=delivery_project,
    )
