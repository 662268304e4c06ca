"""
Configuration: defaults, YAML, .env, environment, overrides.
"""

import pytest

from trapline import (
    ConfigError,
    ConfigLoader,
    TraplineConfig,
    configure,
    get_config,
    reset_config,
    set_config,
    throw_if_none,
    trap,
)


# ============================================================================
# TraplineConfig
# ============================================================================

class TestTraplineConfig:

    def test_defaults(self):
        config = TraplineConfig()
        assert config.stack_depth == 12
        assert config.capture_stack is True
        assert config.match_cache is True
        assert config.cache_size == 1024
        assert config.skip_modules == ("contextlib",)

    def test_frozen(self):
        config = TraplineConfig()
        with pytest.raises(AttributeError):
            config.stack_depth = 3

    def test_negative_depth_rejected(self):
        with pytest.raises(ConfigError) as info:
            TraplineConfig(stack_depth=-1)
        assert info.value.details == {"field": "stack_depth"}

    def test_negative_cache_size_rejected(self):
        with pytest.raises(ConfigError):
            TraplineConfig(cache_size=-5)

    def test_to_dict(self):
        data = TraplineConfig(stack_depth=4).to_dict()
        assert data["stack_depth"] == 4
        assert set(data) == {
            "stack_depth", "capture_stack", "match_cache", "cache_size", "skip_modules",
        }


# ============================================================================
# ConfigLoader sources
# ============================================================================

class TestConfigLoader:

    def test_yaml_top_level(self, tmp_path):
        path = tmp_path / "trapline.yaml"
        path.write_text("stack_depth: 5\nmatch_cache: false\n")
        config = ConfigLoader.load(str(path))
        assert config.stack_depth == 5
        assert config.match_cache is False

    def test_yaml_section(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text(
            "trapline:\n"
            "  cache_size: 16\n"
            "  skip_modules:\n"
            "    - contextlib\n"
            "    - myapp.retry\n"
        )
        config = ConfigLoader.load(str(path))
        assert config.cache_size == 16
        assert config.skip_modules == ("contextlib", "myapp.retry")

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ConfigLoader.load(str(path)) == TraplineConfig()

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(ConfigError):
            ConfigLoader.load(str(tmp_path / "nope.yaml"))

    def test_yaml_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError):
            ConfigLoader.load(str(path))

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "TRAPLINE_STACK_DEPTH=7\n"
            "TRAPLINE_CAPTURE_STACK=off\n"
            "UNRELATED=1\n"
        )
        config = ConfigLoader.load(env_file=str(env_file))
        assert config.stack_depth == 7
        assert config.capture_stack is False

    def test_missing_env_file_is_ignored(self, tmp_path):
        config = ConfigLoader.load(env_file=str(tmp_path / ".env"))
        assert config == TraplineConfig()

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("TRAPLINE_CACHE_SIZE", "64")
        monkeypatch.setenv("TRAPLINE_SKIP_MODULES", "contextlib, functools")
        config = ConfigLoader.load()
        assert config.cache_size == 64
        assert config.skip_modules == ("contextlib", "functools")

    def test_environment_json_list(self, monkeypatch):
        monkeypatch.setenv("TRAPLINE_SKIP_MODULES", '["a", "b"]')
        assert ConfigLoader.load().skip_modules == ("a", "b")

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("FAULTS_STACK_DEPTH", "2")
        assert ConfigLoader.load(env_prefix="FAULTS_").stack_depth == 2

    def test_unrelated_prefixed_environment_ignored(self, monkeypatch):
        monkeypatch.setenv("TRAPLINE_HOME", "/opt/trapline")
        monkeypatch.setenv("TRAPLINE_STACK_DEPTH", "4")
        config = ConfigLoader.load()
        assert config.stack_depth == 4
        assert not hasattr(config, "home")

    def test_unrelated_prefixed_env_file_keys_ignored(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TRAPLINE_HOME=/opt/trapline\nTRAPLINE_CACHE_SIZE=3\n")
        assert ConfigLoader.load(env_file=str(env_file)).cache_size == 3

    def test_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "trapline.yaml"
        path.write_text("stack_depth: 3\ncache_size: 8\nmatch_cache: false\n")
        env_file = tmp_path / ".env"
        env_file.write_text("TRAPLINE_STACK_DEPTH=4\nTRAPLINE_CACHE_SIZE=9\n")
        monkeypatch.setenv("TRAPLINE_STACK_DEPTH", "5")

        config = ConfigLoader.load(
            str(path), env_file=str(env_file), overrides={"match_cache": True}
        )
        assert config.stack_depth == 5
        assert config.cache_size == 9
        assert config.match_cache is True

    def test_unknown_field(self):
        with pytest.raises(ConfigError) as info:
            ConfigLoader.load(overrides={"stack_dept": 3})
        assert "stack_dept" in str(info.value)
        assert "Suggestion" in str(info.value)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"stack_depth": "deep"},
            {"stack_depth": True},
            {"capture_stack": 1},
            {"skip_modules": [1, 2]},
        ],
    )
    def test_type_errors(self, overrides):
        with pytest.raises(ConfigError):
            ConfigLoader.load(overrides=overrides)

    def test_parse_value(self):
        loader = ConfigLoader()
        assert loader._parse_value("yes") is True
        assert loader._parse_value("False") is False
        assert loader._parse_value("12") == 12
        assert loader._parse_value("1.5") == 1.5
        assert loader._parse_value('{"a": 1}') == {"a": 1}
        assert loader._parse_value("contextlib") == "contextlib"


# ============================================================================
# Process-wide config
# ============================================================================

class TestGlobalConfig:

    def test_get_config_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TRAPLINE_STACK_DEPTH", "6")
        reset_config()
        assert get_config().stack_depth == 6

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_configure(self):
        config = configure(stack_depth=2)
        assert get_config() is config
        assert config.stack_depth == 2
        assert config.cache_size == 1024

    def test_configure_stacks(self):
        configure(stack_depth=2)
        configure(match_cache=False)
        assert get_config().stack_depth == 2
        assert get_config().match_cache is False

    def test_set_config(self):
        config = TraplineConfig(cache_size=1)
        assert set_config(config) is config
        assert get_config() is config

    def test_set_config_type_check(self):
        with pytest.raises(TypeError):
            set_config({"stack_depth": 1})

    def test_reset_config(self):
        configure(stack_depth=1)
        reset_config()
        assert get_config().stack_depth == 12

    def test_unrelated_environment_does_not_break_traps(self, monkeypatch):
        monkeypatch.setenv("TRAPLINE_HOME", "/opt/trapline")
        reset_config()
        result = trap(lambda: throw_if_none("user", None))
        assert result.failure.kind_name == "ArgumentNullException"
