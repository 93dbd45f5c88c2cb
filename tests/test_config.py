import os

from measureplan.config import MeasurePlanConfig, load_config


def test_defaults_without_file(tmp_path):
    config = load_config(root=str(tmp_path))

    assert isinstance(config, MeasurePlanConfig)
    assert config.formula.identity_order == "date"
    assert config.formula.validated_functions == ["sum", "avg", "count", "min", "max"]
    assert config.estimation.productivity_factor == 10.0
    assert config.output.formats == ["json", "csv", "markdown"]
    assert config.root == str(tmp_path)


def test_file_in_root_is_found(tmp_path):
    (tmp_path / "measureplan.yaml").write_text(
        "version: '2.0'\n"
        "formula:\n"
        "  identity_order: STORE\n"
        "  validated_functions: [SUM, Median]\n"
        "estimation:\n"
        "  hourly_rate: 75\n"
        "  unknown_key: ignored\n"
        "output:\n"
        "  formats: [json]\n",
        encoding="utf-8",
    )
    config = load_config(root=str(tmp_path))

    assert config.version == "2.0"
    assert config.formula.identity_order == "store"
    assert config.formula.validated_functions == ["sum", "median"]
    assert config.estimation.hourly_rate == 75
    assert config.estimation.team_size == 1
    assert not hasattr(config.estimation, "unknown_key")
    assert config.output.formats == ["json"]


def test_config_subdirectory_and_relative_root(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "measureplan.yaml").write_text("root: ..\n", encoding="utf-8")

    config = load_config(root=str(tmp_path))
    assert config.root == os.path.normpath(str(tmp_path))


def test_explicit_config_path(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("output:\n  directory: reports\n", encoding="utf-8")

    config = load_config(config_path=str(path), root=str(tmp_path))
    assert config.output.directory == "reports"
