from __future__ import annotations

from typing import List, Optional

from simple_cicd.models import AmbientContext, PermissionGrant, ResolvedConfig, SimpleCicd
from simple_cicd.stages import delivery
from simple_cicd.utils import get_logger

logger = get_logger(__name__)


def stack_arns(stack_name: str, ambient: AmbientContext) -> List[str]:
    """The stack itself plus everything nested under it. Never all stacks."""
    base = f"arn:aws:cloudformation:{ambient.region}:{ambient.account_id}:stack/{stack_name}"
    return [base, f"{base}/*"]


def delivery_grants(
    principal: str,
    stack_name: str,
    ambient: AmbientContext,
    bucket_arn: Optional[str] = None,
) -> List[PermissionGrant]:
    # PutObject stays unscoped unless a bucket is configured
    objects = f"{bucket_arn.rstrip('/')}/*" if bucket_arn else "*"
    return [
        PermissionGrant(
            principal=principal,
            actions=("cloudformation:DescribeStacks",),
            resources=tuple(stack_arns(stack_name, ambient)),
        ),
        PermissionGrant(principal=principal, actions=("s3:PutObject",), resources=(objects,)),
        PermissionGrant(principal=principal, actions=("iot:DescribeEndpoint",), resources=("*",)),
    ]


def compose_grants(cicd: SimpleCicd, cfg: ResolvedConfig) -> List[PermissionGrant]:
    """Attach the grants the produced stages need to their execution roles.

    Only the delivery role receives grants, and only when a Delivery stage
    exists. Roles are expected to exist already. Returns the grants attached.
    """
    if cicd.pipeline.get_stage(delivery.STAGE_NAME) is None:
        logger.info("policy: no delivery stage, grants=0")
        return []

    project = cicd.delivery_project
    if project is None:
        raise ValueError("Delivery stage present without a delivery project")

    grants = delivery_grants(project.role.name, cfg.stack_name, cfg.ambient, cfg.delivery_bucket_arn)
    for g in grants:
        project.add_to_role_policy(g)
    logger.info("policy: role=%s grants=%d", project.role.name, len(grants))
    return grants
