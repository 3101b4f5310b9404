import pytest

from protolinter.config import ExclusionPolicy, LinterConfig, dump_config, load_config, read_module_name
from protolinter.errors import ConfigError


def test_missing_file_yields_defaults(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"), go_mod_path=str(tmp_path / "go.mod"))

    assert config == LinterConfig()
    assert config.module_name == ""


def test_loads_all_keys(tmp_path):
    path = tmp_path / ".protolinter.yaml"
    path.write_text(
        """
verbose_mode: true
omit_coordinates: true
excluded_checks:
  - method_has_version
excluded_descriptors:
  - pkg.Msg
  - ""
""".strip(),
        encoding="utf-8",
    )

    config = load_config(str(path), github_url="file:///mirror", go_mod_path=str(tmp_path / "go.mod"))

    assert config.verbose_mode is True
    assert config.omit_coordinates is True
    assert config.excluded_checks == ("method_has_version",)
    assert config.github_url == "file:///mirror"
    assert config.policy.excluded_descriptors == ("pkg.Msg",)


def test_rejects_wrong_types(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("verbose_mode: maybe\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(str(path), go_mod_path=str(tmp_path / "go.mod"))


def test_rejects_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(str(path), go_mod_path=str(tmp_path / "go.mod"))


def test_dump_round_trips_through_load(tmp_path):
    config = LinterConfig(
        omit_coordinates=True,
        excluded_checks=("enum_value_has_comments",),
        excluded_descriptors=("pkg.A", "pkg.B"),
    )
    path = tmp_path / "generated.yaml"
    path.write_text(dump_config(config), encoding="utf-8")

    assert load_config(str(path), go_mod_path=str(tmp_path / "go.mod")) == config


def test_exclusion_policy_matches_prefixes():
    policy = ExclusionPolicy(excluded_checks=frozenset({"method_has_version"}), excluded_descriptors=("pkg.Msg",))

    assert policy.is_check_excluded("method_has_version")
    assert not policy.is_check_excluded("method_has_body_tag")
    assert policy.is_descriptor_excluded("pkg.Msg.Nested.field2")
    assert not policy.is_descriptor_excluded("pkg.Other")


def test_module_name_from_go_mod(tmp_path):
    go_mod = tmp_path / "go.mod"
    go_mod.write_text("module github.com/acme/api\n\ngo 1.21\n", encoding="utf-8")

    assert read_module_name(str(go_mod)) == "github.com/acme/api"
    assert load_config(str(tmp_path / "none.yaml"), go_mod_path=str(go_mod)).module_name == "github.com/acme/api"
