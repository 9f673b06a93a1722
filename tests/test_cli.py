import json
import textwrap

from typer.testing import CliRunner

from fieldmap.cli import app


runner = CliRunner()


# ==========================================================
# properties
# ==========================================================

def test_properties_lists_mapped_fields():
    result = runner.invoke(app, ["properties", "fixture_models:SourceObject", "fixture_models:Destination"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == "title <- json @ /title (from SourceObject)"
    assert "description <- more_json @ /a/b/value" in lines
    assert not any(line.startswith("broadcasters") for line in lines)


def test_properties_with_group():
    result = runner.invoke(app, [
        "properties", "fixture_models:SourceObject", "fixture_models:Destination",
        "--group", "fixture_models:GroupA",
    ])
    assert result.exit_code == 0, result.output
    assert "broadcasters <- more_json @ /nisv.currentbroadcaster" in result.output


def test_properties_nothing_mapped():
    result = runner.invoke(app, ["properties", "fixture_models:SubObject", "fixture_models:Shout"])
    assert result.exit_code == 0
    assert "No fields mapped." in result.output


def test_properties_bad_class_reference():
    result = runner.invoke(app, ["properties", "fixture_models:Nope", "fixture_models:Destination"])
    assert result.exit_code == 2


# ==========================================================
# map
# ==========================================================

def test_map_json_file(tmp_path):
    src = tmp_path / "src.json"
    src.write_text('{resolved_value: "BNN"}', encoding="utf-8")
    result = runner.invoke(app, ["map", str(src), "fixture_models:Broadcaster"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"broadcaster": None, "broadcaster2": "BNN", "id": 0}


def test_map_with_config(tmp_path):
    src = tmp_path / "src.json"
    src.write_text('"hi"', encoding="utf-8")
    cfg = tmp_path / "cfg.yml"
    cfg.write_text("mapper:\n  support_adapters: false\n", encoding="utf-8")

    result = runner.invoke(app, ["map", str(src), "fixture_models:Shout"])
    assert json.loads(result.output) == {"word": "HI"}
    result = runner.invoke(app, ["map", str(src), "fixture_models:Shout", "--config", str(cfg)])
    assert json.loads(result.output) == {"word": "hi"}


def test_map_malformed_json(tmp_path):
    src = tmp_path / "src.json"
    src.write_text("{oops", encoding="utf-8")
    result = runner.invoke(app, ["map", str(src), "fixture_models:Broadcaster"])
    assert result.exit_code == 1


# ==========================================================
# check
# ==========================================================

def test_check_valid_table(tmp_path):
    p = tmp_path / "table.yml"
    p.write_text(textwrap.dedent("""
        destination: fixture_models:CheckedArticle
        fields:
          title:
            - { field: title }
    """), encoding="utf-8")
    result = runner.invoke(app, ["check", str(p)])
    assert result.exit_code == 0, result.output
    assert "OK: fixture_models:CheckedArticle" in result.output


def test_check_invalid_table(tmp_path):
    p = tmp_path / "table.yml"
    p.write_text("destination: fixture_models:CheckedArticle\n", encoding="utf-8")
    result = runner.invoke(app, ["check", str(p)])
    assert result.exit_code == 1
    assert runner.invoke(app, ["check", str(tmp_path / "absent.yml")]).exit_code == 1


def test_missing_table_file_is_reported(tmp_path):
    absent = str(tmp_path / "absent.yml")
    result = runner.invoke(app, [
        "properties", "fixture_models:SourceObject", "fixture_models:Destination", "--table", absent,
    ])
    assert result.exit_code == 2
    assert isinstance(result.exception, SystemExit)

    src = tmp_path / "src.json"
    src.write_text("{}", encoding="utf-8")
    result = runner.invoke(app, ["map", str(src), "fixture_models:Broadcaster", "--table", absent])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
