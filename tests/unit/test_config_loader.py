import os
import tempfile

import pytest
import yaml

from schemagen.utils import load_yaml_with_env


def test_load_yaml_with_env_success(monkeypatch):
    content = """
    package: ${PKG_VAR}
    output_path: ${env:OUT_DIR}/schema.json
    mixed: prefix_${PKG_VAR}_suffix
    number: ${NUMBER_VAR}
    """

    monkeypatch.setenv("PKG_VAR", "models")
    monkeypatch.setenv("OUT_DIR", "build")
    monkeypatch.setenv("NUMBER_VAR", "123")

    with tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".yaml") as f:
        f.write(content)
        path = f.name

    try:
        config = load_yaml_with_env(path)
        assert config["package"] == "models"
        assert config["output_path"] == "build/schema.json"
        assert config["mixed"] == "prefix_models_suffix"
        assert config["number"] == 123
    finally:
        os.remove(path)


def test_load_yaml_with_env_missing_var(monkeypatch):
    content = "package: ${MISSING_VAR}"

    with tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".yaml") as f:
        f.write(content)
        path = f.name

    try:
        monkeypatch.delenv("MISSING_VAR", raising=False)
        with pytest.raises(ValueError, match="Missing environment variable: MISSING_VAR"):
            load_yaml_with_env(path)
    finally:
        os.remove(path)


def test_load_yaml_with_env_file_not_found():
    with pytest.raises(FileNotFoundError):
        load_yaml_with_env("non_existent_file.yaml")


def test_load_yaml_invalid_syntax(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("types: [Person\n")

    with pytest.raises(yaml.YAMLError):
        load_yaml_with_env(str(path))


def test_load_yaml_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- Person\n- Order\n")

    with pytest.raises(ValueError, match="must be a mapping"):
        load_yaml_with_env(str(path))


def test_imports_are_merged_under_importing_file(tmp_path):
    (tmp_path / "base.yaml").write_text(
        "package: base.models\ntypes: [Person]\nresolver:\n  search_paths: [vendor]\n"
    )
    main = tmp_path / "main.yaml"
    main.write_text(
        "imports: [base.yaml]\n"
        "package: app.models\n"
        "types: [Order, Person]\n"
        "resolver:\n"
        "  auto_install: true\n"
    )

    config = load_yaml_with_env(str(main))

    assert config["package"] == "app.models"
    assert config["types"] == ["Person", "Order"]
    assert config["resolver"] == {"search_paths": ["vendor"], "auto_install": True}
    assert "imports" not in config


def test_missing_import_raises(tmp_path):
    main = tmp_path / "main.yaml"
    main.write_text("imports: [nowhere.yaml]\npackage: app\n")

    with pytest.raises(FileNotFoundError, match="Imported YAML file not found"):
        load_yaml_with_env(str(main))


def test_unknown_environment_leaves_config_untouched(tmp_path):
    path = tmp_path / "schemagen.yaml"
    path.write_text("package: app\nenvironments:\n  ci:\n    package: other\n")

    config = load_yaml_with_env(str(path), env="release")

    assert config == {"package": "app"}
