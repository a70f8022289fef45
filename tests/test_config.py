import pytest

from kubeprism.core.config import ConfigError, PrismConfig, load_config


def test_defaults():
    config = PrismConfig()
    assert config.max_list_items == 100
    assert config.max_fallback_chars == 5000
    assert config.analysis_limit == 10000
    assert config.documentation_analysis_limit == 25000
    assert config.boundary_ratio == 0.8
    assert config.default_namespace == "default"
    assert config.log_marker == "LOGS_BUTTON:"


def test_load_yaml_config(tmp_path):
    path = tmp_path / "prism.yaml"
    path.write_text("max_list_items: 10\ndefault_namespace: staging\nboundary_ratio: 1\n")

    config = load_config(path)
    assert config.max_list_items == 10
    assert config.default_namespace == "staging"
    assert config.boundary_ratio == 1.0
    assert config.max_fallback_chars == 5000


def test_load_json_config(tmp_path):
    path = tmp_path / "prism.json"
    path.write_text('{"analysis_limit": 2000}')
    assert load_config(path).analysis_limit == 2000


def test_empty_config_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == PrismConfig()


@pytest.mark.parametrize("body", [
    "unknown_key: 1\n",
    "max_list_items: many\n",
    "max_list_items: true\n",
    "max_list_items: 0\n",
    "boundary_ratio: 1.5\n",
    "log_marker: ''\n",
    "- just\n- a list\n",
    "max_list_items: [\n",
])
def test_invalid_config(tmp_path, body):
    path = tmp_path / "bad.yaml"
    path.write_text(body)
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.yaml")
