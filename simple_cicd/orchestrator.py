import argparse
import time
import uuid
from typing import Dict, Any, List, Optional, Union

from simple_cicd.models import AmbientContext, PipelineConfig, SimpleCicd
from simple_cicd.policy import compose_grants
from simple_cicd.rendering import render_md, to_document
from simple_cicd.resolver import resolve_config
from simple_cicd.topology import build_topology
from simple_cicd.utils import get_logger, load_config, validate_config, write_output

logger = get_logger(__name__)


def construct_pipeline(
    config: Union[PipelineConfig, Dict[str, Any]],
    ambient: Optional[AmbientContext] = None,
) -> SimpleCicd:
    """Resolve the config, build the topology and attach the grants it needs.

    Either returns a complete pipeline or raises; nothing partial is returned.
    """
    if isinstance(config, dict):
        validate_config(config)
        config = PipelineConfig.from_dict(config)
    t0 = time.monotonic()
    resolved = resolve_config(config, ambient)
    cicd = build_topology(resolved)
    grants = compose_grants(cicd, resolved)
    logger.info(
        "pipeline constructed stages=%d grants=%d took_ms=%d",
        len(cicd.pipeline.stages),
        len(grants),
        int((time.monotonic() - t0) * 1000),
    )
    return cicd


def _apply_overrides(cfg: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> None:
    if not overrides:
        return

    if overrides.get("pipeline_name") is not None:
        cfg["pipeline_name"] = overrides["pipeline_name"]
    if overrides.get("stack_name") is not None:
        cfg["stack_name"] = overrides["stack_name"]

    # Source
    src = cfg.setdefault("source", {})
    if overrides.get("source_type") is not None:
        src["type"] = overrides["source_type"]
    if overrides.get("repository_name") is not None:
        src["repository_name"] = overrides["repository_name"]
    if overrides.get("branch_name") is not None:
        src["branch_name"] = overrides["branch_name"]
    if overrides.get("create_repository") is not None:
        src["create_repository"] = bool(overrides["create_repository"])

    # Delivery
    if overrides.get("needs_app_delivery") is not None:
        cfg.setdefault("delivery", {})["enabled"] = bool(overrides["needs_app_delivery"])

    # Output
    if overrides.get("out_dir") is not None or overrides.get("formats"):
        out = cfg.setdefault("output", {})
        if overrides.get("out_dir") is not None:
            out["dir"] = overrides["out_dir"]
        if overrides.get("formats"):
            out["formats"] = list(overrides["formats"])


def _execute(cfg: Dict[str, Any], run_id: str, ambient: Optional[AmbientContext]) -> List[str]:
    logger.info(
        "config loaded run=%s pipeline=%s source=%s",
        run_id,
        cfg.get("pipeline_name"),
        (cfg.get("source") or {}).get("type") or "codecommit",
    )
    validate_config(cfg)

    cicd = construct_pipeline(PipelineConfig.from_dict(cfg), ambient or AmbientContext.from_env())
    doc = to_document(cicd)
    md = render_md(doc)

    out_cfg = cfg.get("output") or {}
    generated_files = write_output(md, doc, out_cfg)
    logger.info("output written dir=%s files=%d", out_cfg.get("dir", "out"), len(generated_files))
    return generated_files


def run_once(
    config_path: str,
    *,
    overrides: Optional[Dict[str, Any]] = None,
    ambient: Optional[AmbientContext] = None,
) -> List[str]:
    """Build the pipeline described by a config file and write it out."""
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== run start id=%s ===", run_id)

    try:
        cfg = load_config(config_path)
        _apply_overrides(cfg, overrides)
        return _execute(cfg, run_id, ambient)

    except Exception as e:
        logger.error("Pipeline construction failed: %s", e)
        raise
    finally:
        logger.info("=== run end id=%s ===", run_id)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Declare a CI/CD pipeline topology from a YAML config.")
    parser.add_argument("--config", type=str, required=True, help="Path to the pipeline config YAML file.")
    parser.add_argument("--source-type", dest="source_type", choices=["codecommit", "github"], help="Source provider")
    parser.add_argument("--repository-name", dest="repository_name", type=str, help="Source repository name")
    parser.add_argument("--branch", dest="branch_name", type=str, help="Branch to track (default: master)")
    parser.add_argument("--stack-name", dest="stack_name", type=str, help="Target stack name")
    parser.add_argument("--pipeline-name", dest="pipeline_name", type=str, help="Pipeline name")
    parser.add_argument("--create-repo", dest="create_repository", action="store_true", help="Declare a new CodeCommit repository")
    parser.add_argument("--no-create-repo", dest="create_repository", action="store_false", help="Use an existing CodeCommit repository")
    parser.add_argument("--delivery", dest="needs_app_delivery", action="store_true", help="Append the application delivery stage")
    parser.add_argument("--no-delivery", dest="needs_app_delivery", action="store_false", help="Skip the application delivery stage")
    parser.add_argument("--out-dir", dest="out_dir", type=str, help="Output directory")
    parser.add_argument("--format", dest="formats", action="append", choices=["json", "yaml", "md"], help="Output format (repeatable)")
    parser.set_defaults(create_repository=None, needs_app_delivery=None)
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "source_type": args.source_type,
        "repository_name": args.repository_name,
        "branch_name": args.branch_name,
        "stack_name": args.stack_name,
        "pipeline_name": args.pipeline_name,
        "create_repository": args.create_repository,
        "needs_app_delivery": args.needs_app_delivery,
        "out_dir": args.out_dir,
        "formats": args.formats,
    }


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for CLI usage."""
    args = build_parser().parse_args(argv)
    files = run_once(args.config, overrides=overrides_from_args(args))
    for path in files:
        print(path)


if __name__ == "__main__":
    main()
