import json

import yaml

import cli


def test_cli_main_writes_files(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("STACK_NAME", "prod")
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text(yaml.safe_dump({"source": {"repository_name": "app"}}), encoding="utf-8")
    out_dir = tmp_path / "out"

    cli.main(["--config", str(config_path), "--delivery", "--no-create-repo", "--out-dir", str(out_dir), "--format", "json"])

    printed = capsys.readouterr().out.split()
    assert len(printed) == 1 and printed[0].endswith(".json")
    with open(printed[0], encoding="utf-8") as f:
        doc = json.load(f)
    assert doc["pipeline"]["stage_names"] == ["Staging", "BuildInfra", "Deploy", "Delivery"]
    assert doc["source_binding"]["created"] is False
    env = doc["delivery_project"]["environment_variables"]
    assert env == [{"name": "STACK_NAME", "value": "prod", "type": "PLAINTEXT"}]
