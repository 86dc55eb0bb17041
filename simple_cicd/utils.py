import os
import re
import json
import yaml
import datetime as dt
import logging
from logging.handlers import TimedRotatingFileHandler
from jsonschema import validate, Draft202012Validator
from jsonschema.exceptions import ValidationError
from typing import Optional

from simple_cicd.errors import ConfigError

# ---------- Config validation ----------

def load_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def load_schema() -> dict:
    here = os.path.dirname(os.path.abspath(__file__))
    schema_path = os.path.join(here, "schemas", "config.schema.json")
    return json.loads(load_file(schema_path))

def validate_config(cfg: dict):
    schema = load_schema()
    try:
        validate(instance=cfg, schema=schema, cls=Draft202012Validator)
    except ValidationError as e:
        raise ConfigError(f"Config validation error: {e.message} at {list(e.path)}") from e

def load_config(path: str) -> dict:
    """Parse a YAML config file. Schema validation runs once overrides are applied."""
    cfg = yaml.safe_load(load_file(path)) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config validation error: expected a mapping in {path}")
    return cfg

# ---------- Output writer ----------

def write_output(human_md: str, json_obj: dict, out_cfg: dict):
    out_dir = out_cfg.get("dir", "out")
    formats = out_cfg.get("formats") or ["json"]
    os.makedirs(out_dir, exist_ok=True)
    now_local = dt.datetime.now().astimezone()
    ts = now_local.strftime("%Y%m%dT%H%M%S%z")
    base = os.path.join(out_dir, f"pipeline_{ts}")

    generated_files = []

    if "json" in formats:
        json_path = base + ".json"
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(json_obj, f, ensure_ascii=False, indent=2)
        generated_files.append(json_path)

    if "yaml" in formats:
        yaml_path = base + ".yaml"
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(json_obj, f, sort_keys=False, allow_unicode=True)
        generated_files.append(yaml_path)

    if "md" in formats:
        md_path = base + ".md"
        with open(md_path, "w", encoding="utf-8") as f:
            f.write(human_md)
        generated_files.append(md_path)

    return generated_files

# ---------- Logging ----------

_LOGGER_INITIALIZED = False

class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _build_logger():
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    # Empty LOG_DIR keeps logging on the console only
    log_dir = os.getenv("LOG_DIR", "logs")
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level, logging.INFO))

    if json_mode:
        fmt = JsonFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    ch = logging.StreamHandler()
    ch.setLevel(logger.level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = TimedRotatingFileHandler(os.path.join(log_dir, "simple-cicd.log"), when="D", backupCount=7, encoding="utf-8")
        fh.setLevel(logger.level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    _LOGGER_INITIALIZED = True

def get_logger(name: Optional[str] = None) -> logging.Logger:
    _build_logger()
    return logging.getLogger(name if name else __name__)

# ---------- Secret redaction ----------

def redact_secrets(s: str) -> str:
    """Redact sensitive information from strings for safe logging."""
    if not s:
        return s

    redacted = s
    pattern_flags = re.IGNORECASE
    # keep the service/region/account part of a secret ARN, drop the secret name
    redacted = re.sub(r"(arn:aws[\w-]*:secretsmanager:[^:]*:[^:]*:secret:)[^\s:]+", r"\1***", redacted, flags=pattern_flags)
    redacted = re.sub(r"ghp_[A-Za-z0-9]{20,}", "ghp_***", redacted, flags=pattern_flags)
    redacted = re.sub(r"(token=)([^\s&]+)", r"\1***", redacted, flags=pattern_flags)
    redacted = re.sub(r"(bearer\s+)[A-Za-z0-9._-]+", r"\1***", redacted, flags=pattern_flags)

    return redacted
