from __future__ import annotations

from simple_cicd.models import Artifact, ChangeSetDeployAction

STAGE_NAME = "Deploy"
CHANGE_SET_NAME = "Main"
TEMPLATE_FILE = "template.yaml"
TEMPLATE_CONFIGURATION_FILE = "template-configuration.json"
# Lets the stack create IAM resources without naming them up front
CAPABILITY_ANONYMOUS_IAM = "CAPABILITY_IAM"


def deploy_action(stack_name: str, infra: Artifact) -> ChangeSetDeployAction:
    return ChangeSetDeployAction(
        action_name="Deploy",
        stack_name=stack_name,
        change_set_name=CHANGE_SET_NAME,
        template_path=infra.at_path(TEMPLATE_FILE),
        template_configuration=infra.at_path(TEMPLATE_CONFIGURATION_FILE),
        admin_permissions=True,
        capabilities=(CAPABILITY_ANONYMOUS_IAM,),
    )
