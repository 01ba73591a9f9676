"""Unit tests for the config model, its editing API and persistence."""

import json
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from pydantic import ValidationError
from rvp.exceptions import ConfigError
from rvp.schema import (
    Config,
    ConfigFormat,
    Resource,
    Selector,
    SelectorType,
    dumps_config,
    load_config,
    loads_config,
    save_config,
)

TOML_CONFIG = """
name = "stocks"
description = "Quotes for a ticker"

[[resources]]
url = "https://quotes.test/%%"

[[resources.selectors]]
path = "#quote .price"
name = "price"
parsed_type = "Number"

[[resources.selectors]]
path = "h1"
name = "ticker"
parsed_type = "String"
"""


@pytest.mark.unit
class TestModels:
    def test_selector_defaults_to_string(self):
        assert Selector(path="h1", name="title").parsed_type is SelectorType.STRING

    @pytest.mark.parametrize("field", ["path", "name"])
    def test_blank_selector_fields_rejected(self, field):
        data = {"path": "h1", "name": "title", field: "  "}
        with pytest.raises(ValidationError):
            Selector(**data)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Selector(path="h1", name="title", parsed_type="Date")

    def test_resource_is_frozen(self):
        resource = Resource(url="https://quotes.test/")
        with pytest.raises(ValidationError):
            resource.url = "https://other.test/"

    def test_resource_url_is_stripped(self):
        assert Resource(url="  https://quotes.test/ ").url == "https://quotes.test/"

    def test_needs_parameter(self, sample_config):
        assert sample_config.resources[0].needs_parameter
        assert not sample_config.resources[1].needs_parameter
        assert sample_config.needs_parameters

    def test_with_parameter_replaces_every_placeholder(self):
        resource = Resource(url="https://x.test/%%?again=%%")
        assert resource.with_parameter("42").url == "https://x.test/42?again=42"
        assert resource.url == "https://x.test/%%?again=%%"


@pytest.mark.unit
class TestEditing:
    def test_add_and_remove_resource(self, sample_config):
        index = sample_config.add_resource(Resource(url="https://new.test/"))
        assert index == 2
        removed = sample_config.remove_resource(0)
        assert removed.url == "https://quotes.test/%%"
        assert [r.url for r in sample_config.resources] == ["https://quotes.test/market", "https://new.test/"]

    def test_update_resource_url_keeps_selectors(self, sample_config):
        selectors = sample_config.resources[0].selectors
        updated = sample_config.update_resource_url(0, "https://quotes.test/v2/%%")
        assert updated.url == "https://quotes.test/v2/%%"
        assert sample_config.resources[0].selectors == selectors

    def test_selector_editing(self, sample_config):
        index = sample_config.add_selector(1, Selector(path="p.lead", name="lead"))
        assert index == 1

        updated = sample_config.update_selector(1, 1, parsed_type=SelectorType.NUMBER)
        assert updated == Selector(path="p.lead", name="lead", parsed_type=SelectorType.NUMBER)

        removed = sample_config.remove_selector(1, 0)
        assert removed.name == "title"
        assert [s.name for s in sample_config.resources[1].selectors] == ["lead"]

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_out_of_range_resource(self, sample_config, index):
        with pytest.raises(ConfigError, match=f"no resource at index {index}"):
            sample_config.remove_resource(index)

    def test_out_of_range_selector(self, sample_config):
        with pytest.raises(ConfigError, match="no selector at index 5"):
            sample_config.update_selector(0, 5, name="x")

    @pytest.mark.parametrize("field", ["name", "path"])
    def test_blank_selector_edit_is_a_config_error(self, sample_config, field):
        with pytest.raises(ConfigError, match="invalid selector 0 in resource 0"):
            sample_config.update_selector(0, 0, **{field: "  "})
        assert sample_config.resources[0].selectors[0] == Selector(path="#quote h1.ticker", name="ticker")

    def test_blank_url_edit_is_a_config_error(self, sample_config):
        with pytest.raises(ConfigError, match="invalid URL for resource 1"):
            sample_config.update_resource_url(1, " ")
        assert sample_config.resources[1].url == "https://quotes.test/market"

    def test_add_rejects_wrong_types(self, sample_config):
        with pytest.raises(ConfigError, match="expected a Resource, got str"):
            sample_config.add_resource("https://new.test/")
        with pytest.raises(ConfigError, match="expected a Selector, got dict"):
            sample_config.add_selector(0, {"path": "h1", "name": "t"})
        assert len(sample_config.resources) == 2
        assert len(sample_config.resources[0].selectors) == 3


@pytest.mark.unit
class TestFormats:
    @pytest.mark.parametrize(
        "name, fmt",
        [("a.toml", ConfigFormat.TOML), ("a.JSON", ConfigFormat.JSON), ("dir/b.json", ConfigFormat.JSON)],
    )
    def test_format_from_extension(self, tmp_path, name, fmt):
        assert ConfigFormat.from_path(tmp_path / name) is fmt

    @pytest.mark.parametrize("name", ["config.yaml", "config", "config.toml.bak"])
    def test_unsupported_extension(self, tmp_path, name):
        with pytest.raises(ConfigError, match="unsupported config format"):
            ConfigFormat.from_path(tmp_path / name)

    def test_loads_toml(self):
        config = loads_config(TOML_CONFIG, ConfigFormat.TOML)
        assert config.name == "stocks"
        assert config.resources[0].selectors[0] == Selector(
            path="#quote .price", name="price", parsed_type=SelectorType.NUMBER
        )

    def test_json_layout(self, sample_config):
        data = json.loads(dumps_config(sample_config, ConfigFormat.JSON))
        assert data["resources"][1] == {
            "url": "https://quotes.test/market",
            "selectors": [{"path": "h1", "name": "title", "parsed_type": "String"}],
        }

    def test_no_description_is_omitted(self):
        data = json.loads(dumps_config(Config(name="bare"), ConfigFormat.JSON))
        assert data == {"name": "bare", "resources": []}

    @pytest.mark.parametrize("suffix", [".toml", ".json"])
    def test_save_and_load(self, tmp_config_dir, sample_config, suffix):
        path = save_config(sample_config, tmp_config_dir / f"stocks{suffix}")

        assert load_config(path) == sample_config
        assert [p.name for p in tmp_config_dir.iterdir()] == [f"stocks{suffix}"]

    def test_concurrent_saves_to_one_path(self, tmp_config_dir):
        path = tmp_config_dir / "shared.json"
        configs = [Config(name=f"config-{i}") for i in range(8)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda config: save_config(config, path), configs))

        assert load_config(path) in configs
        assert [p.name for p in tmp_config_dir.iterdir()] == ["shared.json"]

    def test_failed_save_leaves_no_temp_file(self, tmp_config_dir, sample_config):
        path = tmp_config_dir / "stocks.toml"

        with patch("rvp.schema.formats.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(ConfigError, match="disk full"):
                save_config(sample_config, path)

        assert list(tmp_config_dir.iterdir()) == []

    def test_save_creates_parent_dirs(self, tmp_path, sample_config):
        path = save_config(sample_config, tmp_path / "a" / "b" / "stocks.toml")
        assert path.is_file()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="does not exist"):
            load_config(tmp_path / "missing.toml")

    def test_syntax_error(self, tmp_config_dir):
        path = tmp_config_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="failed to parse JSON"):
            load_config(path)

    def test_schema_error(self, tmp_config_dir):
        path = tmp_config_dir / "wrong.toml"
        path.write_text('name = "x"\n[[resources]]\nselectors = []\n', encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid config"):
            load_config(path)
