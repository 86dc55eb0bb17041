"""Render a constructed pipeline as a JSON-compatible document and as Markdown."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import TypeAdapter

from simple_cicd.models import ChangeSetDeployAction, GitHubBinding, SimpleCicd, SourceFetchAction

_CICD_ADAPTER = TypeAdapter(SimpleCicd)


def _action_extras(action) -> Dict[str, Any]:
    extras: Dict[str, Any] = {"category": action.category, "provider": action.provider}
    if isinstance(action, ChangeSetDeployAction):
        extras["template_path"] = action.template_path.location
        extras["template_configuration"] = action.template_configuration.location
        extras["inputs"] = [{"name": a.name} for a in action.inputs]
    if isinstance(action, SourceFetchAction) and isinstance(action.source, GitHubBinding):
        extras["oauth_token"] = action.source.oauth_token.dynamic_reference
    return extras


def to_document(cicd: SimpleCicd) -> Dict[str, Any]:
    doc = _CICD_ADAPTER.dump_python(cicd, mode="json")
    for stage_doc, stage in zip(doc["pipeline"]["stages"], cicd.pipeline.stages):
        for action_doc, action in zip(stage_doc["actions"], stage.actions):
            action_doc.update(_action_extras(action))
    doc["pipeline"]["stage_names"] = cicd.pipeline.stage_names
    return doc


def _md_artifacts(items: List[Dict[str, Any]]) -> str:
    return ", ".join(f"`{a['name']}`" for a in items) or "-"


def _md_project(project: Dict[str, Any]) -> List[str]:
    lines = [
        f"### {project['construct_id']}",
        "",
        f"- build spec: `{project['build_spec']}`",
        f"- image: `{project['build_image']}`",
    ]
    for var in project.get("environment_variables") or []:
        lines.append(f"- env: `{var['name']}={var['value']}` ({var['type'].lower()})")
    role = project["role"]
    lines.append(f"- role: `{role['name']}` ({len(role['grants'])} grants)")
    for g in role["grants"]:
        lines.append(f"  - {', '.join(g['actions'])} on {', '.join(f'`{r}`' for r in g['resources'])}")
    lines.append("")
    return lines


def render_md(doc: Dict[str, Any]) -> str:
    pipeline = doc["pipeline"]
    title = pipeline.get("pipeline_name") or pipeline["construct_id"]
    lines = [f"# {title}", "", "## Stages", ""]
    for i, stage in enumerate(pipeline["stages"], 1):
        lines.append(f"{i}. **{stage['name']}**")
        for action in stage["actions"]:
            lines.append(
                f"   - {action['action_name']} ({action['category']}/{action['provider']}): "
                f"in {_md_artifacts(action['inputs'])} -> out {_md_artifacts(action.get('outputs') or [])}"
            )
            if action.get("stack_name"):
                lines.append(f"     stack `{action['stack_name']}`, change set `{action['change_set_name']}`")
    lines += ["", "## Executors", ""]
    lines += _md_project(doc["build_project"])
    if doc.get("delivery_project"):
        lines += _md_project(doc["delivery_project"])
    return "\n".join(lines).rstrip() + "\n"
