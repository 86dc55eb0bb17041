"""Data model for the pipeline topology.

Configuration records are frozen. The only mutable pieces are the stage list
of a `Pipeline` while it is being assembled and the grant list of an
`ExecutionRole`, which only ever grows.
"""

import os
import typing as t
from dataclasses import dataclass, field
from enum import Enum

DEFAULT_BRANCH = "master"
ACCOUNT_ID_TOKEN = "${AWS::AccountId}"
REGION_TOKEN = "${AWS::Region}"
STACK_NAME_TOKEN = "${AWS::StackName}"


class SourceType(str, Enum):
    CODECOMMIT = "codecommit"
    GITHUB = "github"

    @classmethod
    def coerce(cls, value: t.Any) -> t.Any:
        """Map a known provider name onto the enum; leave anything else as is."""
        if isinstance(value, cls) or value is None:
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return value


@dataclass(frozen=True)
class AmbientContext:
    """Identity of the deployment environment the pipeline is declared in.

    The defaults are CloudFormation pseudo parameters, substituted by the
    provisioning environment at deploy time.
    """

    account_id: str = ACCOUNT_ID_TOKEN
    region: str = REGION_TOKEN
    stack_name: str = STACK_NAME_TOKEN

    @classmethod
    def from_env(cls) -> "AmbientContext":
        return cls(
            account_id=os.getenv("AWS_ACCOUNT_ID") or ACCOUNT_ID_TOKEN,
            region=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or REGION_TOKEN,
            stack_name=os.getenv("STACK_NAME") or STACK_NAME_TOKEN,
        )


@dataclass(frozen=True)
class PipelineConfig:
    source_type: t.Any = None
    repository_name: str = ""
    account_owner: t.Optional[str] = None
    branch_name: t.Optional[str] = None
    create_repository: bool = True
    pipeline_name: t.Optional[str] = None
    stack_name: t.Optional[str] = None
    needs_app_delivery: bool = False
    oauth_secret_arn: t.Optional[str] = None
    # Narrows the delivery PutObject grant to one bucket when set.
    delivery_bucket_arn: t.Optional[str] = None

    @classmethod
    def from_dict(cls, cfg: t.Dict[str, t.Any]) -> "PipelineConfig":
        """Build a config from the nested YAML document layout."""
        source = cfg.get("source") or {}
        delivery = cfg.get("delivery") or {}
        create_repository = source.get("create_repository")
        return cls(
            source_type=source.get("type"),
            repository_name=source.get("repository_name") or "",
            account_owner=source.get("account_owner"),
            branch_name=source.get("branch_name"),
            create_repository=True if create_repository is None else bool(create_repository),
            pipeline_name=cfg.get("pipeline_name"),
            stack_name=cfg.get("stack_name"),
            needs_app_delivery=bool(delivery.get("enabled", False)),
            oauth_secret_arn=source.get("oauth_secret_arn"),
            delivery_bucket_arn=delivery.get("bucket_arn"),
        )


@dataclass(frozen=True)
class ResolvedConfig:
    source_type: t.Any
    repository_name: str
    branch_name: str
    create_repository: bool
    stack_name: str
    needs_app_delivery: bool
    ambient: AmbientContext
    account_owner: t.Optional[str] = None
    oauth_secret_arn: t.Optional[str] = None
    pipeline_name: t.Optional[str] = None
    delivery_bucket_arn: t.Optional[str] = None


# ---------- Artifacts & source bindings ----------

@dataclass(frozen=True)
class Artifact:
    name: str

    def at_path(self, file_name: str) -> "ArtifactPath":
        return ArtifactPath(artifact=self, file_name=file_name)


@dataclass(frozen=True)
class ArtifactPath:
    artifact: Artifact
    file_name: str

    @property
    def location(self) -> str:
        return f"{self.artifact.name}::{self.file_name}"


@dataclass(frozen=True)
class SecretReference:
    secret_arn: str
    json_field: str

    @property
    def dynamic_reference(self) -> str:
        return f"{{{{resolve:secretsmanager:{self.secret_arn}:SecretString:{self.json_field}}}}}"


@dataclass(frozen=True)
class RepositoryBinding:
    repository_name: str
    # True when the repository is declared by this pipeline, False when looked up by name.
    created: bool
    description: t.Optional[str] = None


@dataclass(frozen=True)
class GitHubBinding:
    owner: str
    repo: str
    branch: str
    oauth_token: SecretReference


SourceBinding = t.Union[RepositoryBinding, GitHubBinding]


# ---------- Executors & permissions ----------

@dataclass(frozen=True)
class PermissionGrant:
    principal: str
    actions: t.Tuple[str, ...]
    resources: t.Tuple[str, ...]


@dataclass
class ExecutionRole:
    name: str
    grants: t.List[PermissionGrant] = field(default_factory=list)

    def add_to_policy(self, grant: PermissionGrant) -> None:
        self.grants.append(grant)


@dataclass(frozen=True)
class EnvironmentVariable:
    name: str
    value: str
    type: str = "PLAINTEXT"


@dataclass(frozen=True)
class BuildProject:
    construct_id: str
    build_spec: str
    build_image: str
    role: ExecutionRole
    environment_variables: t.Tuple[EnvironmentVariable, ...] = ()

    def add_to_role_policy(self, grant: PermissionGrant) -> None:
        self.role.add_to_policy(grant)


# ---------- Actions & stages ----------

@dataclass(frozen=True)
class SourceFetchAction:
    action_name: str
    source: SourceBinding
    branch: str
    outputs: t.Tuple[Artifact, ...]
    inputs: t.Tuple[Artifact, ...] = ()

    category: t.ClassVar[str] = "Source"

    @property
    def provider(self) -> str:
        return "GitHub" if isinstance(self.source, GitHubBinding) else "CodeCommit"


@dataclass(frozen=True)
class BuildInvokeAction:
    action_name: str
    project: str
    inputs: t.Tuple[Artifact, ...]
    outputs: t.Tuple[Artifact, ...] = ()

    category: t.ClassVar[str] = "Build"
    provider: t.ClassVar[str] = "CodeBuild"


@dataclass(frozen=True)
class ChangeSetDeployAction:
    action_name: str
    stack_name: str
    change_set_name: str
    template_path: ArtifactPath
    template_configuration: ArtifactPath
    admin_permissions: bool
    capabilities: t.Tuple[str, ...]
    action_mode: str = "CHANGE_SET_REPLACE"

    category: t.ClassVar[str] = "Deploy"
    provider: t.ClassVar[str] = "CloudFormation"

    @property
    def inputs(self) -> t.Tuple[Artifact, ...]:
        return (self.template_path.artifact,)

    @property
    def outputs(self) -> t.Tuple[Artifact, ...]:
        return ()


@dataclass(frozen=True)
class DeliveryInvokeAction:
    action_name: str
    project: str
    inputs: t.Tuple[Artifact, ...]
    outputs: t.Tuple[Artifact, ...] = ()

    category: t.ClassVar[str] = "Build"
    provider: t.ClassVar[str] = "CodeBuild"


Action = t.Union[SourceFetchAction, BuildInvokeAction, ChangeSetDeployAction, DeliveryInvokeAction]


@dataclass(frozen=True)
class Stage:
    name: str
    actions: t.Tuple[Action, ...]


@dataclass
class Pipeline:
    construct_id: str = "CicdPipeline"
    pipeline_name: t.Optional[str] = None
    stages: t.List[Stage] = field(default_factory=list)

    def add_stage(self, name: str, actions: t.Sequence[Action]) -> Stage:
        if any(s.name == name for s in self.stages):
            raise ValueError(f"Duplicate stage name: {name}")
        stage = Stage(name=name, actions=tuple(actions))
        self.stages.append(stage)
        return stage

    def get_stage(self, name: str) -> t.Optional[Stage]:
        for s in self.stages:
            if s.name == name:
                return s
        return None

    @property
    def stage_names(self) -> t.List[str]:
        return [s.name for s in self.stages]


@dataclass
class SimpleCicd:
    """Handles handed to the embedding system."""

    source_binding: SourceBinding
    pipeline: Pipeline
    build_project: BuildProject
    delivery_project: t.Optional[BuildProject] = None
