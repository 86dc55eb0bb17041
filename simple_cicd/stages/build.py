from __future__ import annotations

from simple_cicd.models import Artifact, BuildInvokeAction, BuildProject, ExecutionRole

STAGE_NAME = "BuildInfra"
BUILD_SPEC = "buildspec.yaml"
BUILD_IMAGE = "aws/codebuild/nodejs:10.1.0"


def build_project() -> BuildProject:
    return BuildProject(
        construct_id="BuildProject",
        build_spec=BUILD_SPEC,
        build_image=BUILD_IMAGE,
        role=ExecutionRole(name="BuildProjectRole"),
    )


def build_action(project: BuildProject, source: Artifact, output: Artifact) -> BuildInvokeAction:
    return BuildInvokeAction(
        action_name="InfraSynthesis",
        project=project.construct_id,
        inputs=(source,),
        outputs=(output,),
    )
