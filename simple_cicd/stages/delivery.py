from __future__ import annotations

from simple_cicd.models import Artifact, BuildProject, DeliveryInvokeAction, EnvironmentVariable, ExecutionRole
from simple_cicd.stages.build import BUILD_IMAGE

STAGE_NAME = "Delivery"
DELIVER_SPEC = "deliverspec.yaml"


def delivery_project(stack_name: str) -> BuildProject:
    """Second executor; runs against the source tree, not the infra output."""
    return BuildProject(
        construct_id="DeliveryProject",
        build_spec=DELIVER_SPEC,
        build_image=BUILD_IMAGE,
        role=ExecutionRole(name="DeliveryProjectRole"),
        environment_variables=(EnvironmentVariable(name="STACK_NAME", value=stack_name),),
    )


def delivery_action(project: BuildProject, source: Artifact) -> DeliveryInvokeAction:
    return DeliveryInvokeAction(action_name="DeliverApp", project=project.construct_id, inputs=(source,))
