import pytest


def test_defaults():
    from gostub.config import DEFAULT_OPTIONS_PACKAGE, GeneratorOptions

    opts = GeneratorOptions.from_env({})
    assert opts.options_package == DEFAULT_OPTIONS_PACKAGE
    assert opts.locking_package == "sync"
    assert opts.gofmt == "auto"
    assert opts.typed_result_names is False
    assert opts.header is True


def test_env_overrides():
    from gostub.config import GeneratorOptions

    env = {
        "GOSTUB_OPTIONS_PACKAGE": "example.com/app/stubopts",
        "GOSTUB_GOFMT": "Never",
        "GOSTUB_GO": "/usr/local/go/bin/go",
        "GOSTUB_GOFMT_BIN": "/usr/local/go/bin/gofmt",
        "GOSTUB_TYPED_RESULT_NAMES": "yes",
    }
    opts = GeneratorOptions.from_env(env)
    assert opts.options_package == "example.com/app/stubopts"
    assert opts.gofmt == "never"
    assert opts.go == "/usr/local/go/bin/go"
    assert opts.gofmt_bin == "/usr/local/go/bin/gofmt"
    assert opts.typed_result_names is True


def test_keyword_overrides_win_and_none_falls_through():
    from gostub.config import GeneratorOptions

    env = {"GOSTUB_OPTIONS_PACKAGE": "example.com/env/opts", "GOSTUB_GOFMT": "always"}
    opts = GeneratorOptions.from_env(env, options_package=None, gofmt="never")
    assert opts.options_package == "example.com/env/opts"
    assert opts.gofmt == "never"


def test_invalid_values_raise_config_error():
    from gostub.config import GeneratorOptions
    from gostub.errors import ConfigError

    with pytest.raises(ConfigError, match=r"gofmt"):
        GeneratorOptions.from_env({"GOSTUB_GOFMT": "sometimes"})
    with pytest.raises(ConfigError, match=r"GOSTUB_TYPED_RESULT_NAMES"):
        GeneratorOptions.from_env({"GOSTUB_TYPED_RESULT_NAMES": "maybe"})
    with pytest.raises(ConfigError):
        GeneratorOptions(options_package="  ")
