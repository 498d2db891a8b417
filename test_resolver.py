#!/usr/bin/env python3
"""
Test suite for config files and script resolution.
Run with: pytest test_resolver.py -v
"""
import pytest
import yaml

from runfile.config import ConfigFile, find_config_file
from runfile.context import RunContext
from runfile.environment import FakeEnvStorage
from runfile.errors import (
    ConfigNotFound,
    InvalidConfigFile,
    InvalidScriptShape,
    MalformedCommandLine,
    MultipleDefinedScript,
    ScriptNotFound,
)
from runfile.resolver import ScriptResolver


def write_config(directory, content, name="runfile.yml"):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(content)
    return path


@pytest.fixture
def resolver():
    return ScriptResolver(RunContext(env=FakeEnvStorage({"WHO": "world"})))


@pytest.fixture
def local_dir(tmp_path):
    directory = tmp_path / "project"
    write_config(directory, """
scripts:
  hello: echo hello $WHO
  setup:
    - npm install
    - npm run build
  empty: []
  testing: pytest -x
  shared: echo local
""")
    return directory


@pytest.fixture
def global_dir(tmp_path):
    directory = tmp_path / "global"
    write_config(directory, """
scripts:
  shared: echo global
  deploy: ./deploy.sh "${TARGET}"
  test-all: make test
""", name="runfile.yaml")
    return directory


class TestFindConfigFile:
    """Tests for locating config files in a directory."""

    def test_yml_preferred(self, tmp_path):
        write_config(tmp_path, "scripts: {}", name="runfile.yaml")
        yml = write_config(tmp_path, "scripts: {}", name="runfile.yml")

        assert find_config_file(tmp_path) == yml

    def test_yaml_fallback(self, tmp_path):
        yaml_file = write_config(tmp_path, "scripts: {}", name="runfile.yaml")

        assert find_config_file(tmp_path) == yaml_file

    def test_nothing_found(self, tmp_path):
        assert find_config_file(tmp_path) is None


class TestConfigFile:
    """Tests for parsing a single config file."""

    def test_empty_document(self, tmp_path):
        config = ConfigFile.load(write_config(tmp_path, ""))

        assert config.scripts == {}

    def test_invalid_yaml(self, tmp_path):
        path = write_config(tmp_path, "scripts: [unclosed")

        with pytest.raises(InvalidConfigFile) as info:
            ConfigFile.load(path)

        assert info.value.path == path

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(InvalidConfigFile):
            ConfigFile.load(write_config(tmp_path, "- a\n- b\n"))

    @pytest.mark.parametrize("value", ["42", "{a: b}", "[echo a, 3]"])
    def test_invalid_script_shape(self, tmp_path, value):
        config = ConfigFile.load(write_config(tmp_path, f"scripts:\n  broken: {value}\n"))

        with pytest.raises(InvalidScriptShape) as info:
            config.commands("broken")

        assert info.value.script == "broken"

    def test_set_script(self):
        config = ConfigFile()
        config.set_script("single", ["echo one"])
        config.set_script("multi", ["echo one", "echo two"])
        config.set_script("ignored", [])

        assert config.scripts == {"single": "echo one", "multi": ["echo one", "echo two"]}
        assert yaml.safe_load(config.to_yaml()) == {"scripts": config.scripts}


class TestAddLookupPath:
    """Tests for registering lookup paths."""

    def test_missing_config(self, resolver, tmp_path):
        with pytest.raises(ConfigNotFound):
            resolver.add_lookup_path(tmp_path)

        assert resolver.target_files == []

    def test_registers_once(self, resolver, local_dir):
        """Test the same file registered twice is kept once."""
        resolver.add_lookup_path(local_dir)
        resolver.add_lookup_path(local_dir / ".." / local_dir.name)

        assert resolver.target_files == [(local_dir / "runfile.yml").resolve()]
        assert resolver.list_scripts("hello") == ["hello"]


class TestResolve:
    """Tests for resolving scripts into commands."""

    def test_single_command(self, resolver, local_dir):
        resolver.add_lookup_path(local_dir)

        resolved = resolver.resolve("hello")

        assert len(resolved.commands) == 1
        assert resolved.commands[0].program == "echo"
        assert resolved.commands[0].args == ["hello", "world"]
        assert resolved.multiple_defined is None

    def test_list_keeps_order(self, resolver, local_dir):
        resolver.add_lookup_path(local_dir)

        commands = resolver.resolve("setup").commands

        assert [str(c) for c in commands] == ["npm install", "npm run build"]

    def test_empty_script(self, resolver, local_dir):
        resolver.add_lookup_path(local_dir)

        assert resolver.resolve("empty").commands == []

    def test_first_registered_wins(self, resolver, local_dir, global_dir):
        """Test duplicates resolve to the first file and are reported."""
        resolver.add_lookup_path(local_dir)
        resolver.add_lookup_path(global_dir)

        resolved = resolver.resolve("shared")

        assert [str(c) for c in resolved.commands] == ["echo local"]
        assert resolved.source == (local_dir / "runfile.yml").resolve()
        assert isinstance(resolved.multiple_defined, MultipleDefinedScript)
        assert resolved.multiple_defined.ignored == [(global_dir / "runfile.yaml").resolve()]

    def test_registration_order_matters(self, resolver, local_dir, global_dir):
        resolver.add_lookup_path(global_dir)
        resolver.add_lookup_path(local_dir)

        assert [str(c) for c in resolver.resolve("shared").commands] == ["echo global"]

    def test_script_from_second_file(self, resolver, local_dir, global_dir):
        resolver.add_lookup_path(local_dir)
        resolver.add_lookup_path(global_dir)

        resolved = resolver.resolve("deploy")

        assert resolved.commands[0].program == "./deploy.sh"
        assert resolved.commands[0].args == [""]
        assert resolved.multiple_defined is None

    def test_script_not_found(self, resolver, local_dir):
        resolver.add_lookup_path(local_dir)

        with pytest.raises(ScriptNotFound) as info:
            resolver.resolve("nope")

        assert info.value.script == "nope"

    def test_no_lookup_paths(self, resolver):
        with pytest.raises(ConfigNotFound):
            resolver.resolve("hello")

    def test_malformed_line(self, resolver, tmp_path):
        resolver.add_lookup_path(write_config(tmp_path, "scripts:\n  bad: echo 'oops\n").parent)

        with pytest.raises(MalformedCommandLine):
            resolver.resolve("bad")


class TestListScripts:
    """Tests for listing available scripts."""

    def test_sorted_union(self, resolver, local_dir, global_dir):
        resolver.add_lookup_path(local_dir)
        resolver.add_lookup_path(global_dir)

        assert resolver.list_scripts("") == [
            "deploy", "empty", "hello", "setup", "shared", "test-all", "testing",
        ]

    def test_prefix_filter(self, resolver, local_dir, global_dir):
        resolver.add_lookup_path(local_dir)
        resolver.add_lookup_path(global_dir)

        assert resolver.list_scripts("te") == ["test-all", "testing"]
        assert resolver.list_scripts("invalid") == []

    def test_no_lookup_paths(self, resolver):
        with pytest.raises(ConfigNotFound):
            resolver.list_scripts()


class TestLookupVariables:
    """Tests for scanning scripts for ${NAME} placeholders."""

    def test_first_seen_order(self, resolver, tmp_path):
        resolver.add_lookup_path(write_config(tmp_path, """
scripts:
  greet: echo ${FOO} and ${BAR}
"""
        ).parent)

        assert resolver.lookup_variables("greet") == ["FOO", "BAR"]

    def test_empty_placeholder_ignored(self, resolver, tmp_path):
        """Test '${}' names no variable."""
        resolver.add_lookup_path(write_config(tmp_path, """
scripts:
  greet: echo ${} ${FOO}
"""
        ).parent)

        assert resolver.lookup_variables("greet") == ["FOO"]

    def test_deduplicated_across_lines_and_files(self, resolver, tmp_path):
        resolver.add_lookup_path(write_config(tmp_path / "a", """
scripts:
  build:
    - docker build -t ${IMAGE} .
    - docker push ${IMAGE}:${TAG}
"""
        ).parent)
        resolver.add_lookup_path(write_config(tmp_path / "b", """
scripts:
  build: make ${TAG} ${ARCH}
"""
        ).parent)

        assert resolver.lookup_variables("build") == ["IMAGE", "TAG", "ARCH"]

    def test_scans_raw_text(self, resolver, global_dir):
        """Test variables are reported even when the environment has a value."""
        resolver.context.env.set("TARGET", "prod")
        resolver.add_lookup_path(global_dir)

        assert resolver.lookup_variables("deploy") == ["TARGET"]

    def test_plain_dollar_vars_are_ignored(self, resolver, local_dir):
        resolver.add_lookup_path(local_dir)

        assert resolver.lookup_variables("hello") == []

    def test_nothing_registered(self, resolver):
        assert resolver.lookup_variables("anything") == []
