"""Tests for the named profile registry"""

from pathlib import Path

import pytest
import yaml

from ctgen.exceptions import InitError, ValidationError
from ctgen.registry import ProfileRegistry

PROFILE_YAML = """
profile:
  name: {name}
  dsn: sqlite:///app.db
  templates-dir: templates
  prompts: []
  targets: []
"""


@pytest.fixture
def config_file(tmp_path) -> Path:
    return tmp_path / 'home' / '.ctgen' / 'profiles.yml'


@pytest.fixture
def project_dir(tmp_path) -> Path:
    path = tmp_path / 'project'
    path.mkdir()
    (path / 'Ctgen.yml').write_text(PROFILE_YAML.format(name='api'))
    return path


@pytest.mark.unit
class TestProfileRegistry:
    """Test ProfileRegistry class"""

    def test_creates_config_file(self, config_file):
        registry = ProfileRegistry(str(config_file))

        assert config_file.is_file()
        assert yaml.safe_load(config_file.read_text()) == {'profiles': {}}
        assert registry.list() == {}

    def test_config_file_from_environment(self, config_file, monkeypatch):
        monkeypatch.setenv('CTGEN_CONFIG', str(config_file))
        assert ProfileRegistry().config_file == config_file

    def test_add_directory_uses_declared_name(self, config_file, project_dir):
        registry = ProfileRegistry(str(config_file))

        assert registry.add('', str(project_dir)) == 'api'
        assert registry.get_path('api') == (project_dir / 'Ctgen.yml').resolve()

    def test_add_file_with_name(self, config_file, project_dir):
        registry = ProfileRegistry(str(config_file))

        assert registry.add('backend', str(project_dir / 'Ctgen.yml')) == 'backend'
        assert registry.load('backend').name == 'backend'

    def test_add_current_directory_as_default(self, config_file, project_dir, monkeypatch):
        monkeypatch.chdir(project_dir)
        registry = ProfileRegistry(str(config_file))

        assert registry.add('', '.', default=True) == 'default'
        assert registry.get_path('default') == (project_dir / 'Ctgen.yml').resolve()

    def test_profiles_persist(self, config_file, project_dir):
        ProfileRegistry(str(config_file)).add('backend', str(project_dir))

        assert list(ProfileRegistry(str(config_file)).list().keys()) == ['backend']

    def test_invalid_name(self, config_file, project_dir):
        registry = ProfileRegistry(str(config_file))

        with pytest.raises(ValidationError, match='Invalid profile name'):
            registry.add('bad name!', str(project_dir))

    def test_invalid_declared_name(self, config_file, tmp_path):
        path = tmp_path / 'other'
        path.mkdir()
        (path / 'Ctgen.yml').write_text(PROFILE_YAML.format(name="'my api 2'"))

        with pytest.raises(ValidationError, match='Invalid profile name'):
            ProfileRegistry(str(config_file)).add('', str(path))

    def test_missing_profile_file(self, config_file, tmp_path):
        with pytest.raises(ValidationError, match='Profile config file not found'):
            ProfileRegistry(str(config_file)).add('api', str(tmp_path))

    def test_invalid_profile_is_not_registered(self, config_file, tmp_path):
        (tmp_path / 'Ctgen.yml').write_text('profile: [broken')
        registry = ProfileRegistry(str(config_file))

        with pytest.raises(ValidationError):
            registry.add('api', str(tmp_path))
        assert registry.list() == {}

    def test_remove(self, config_file, project_dir):
        registry = ProfileRegistry(str(config_file))
        registry.add('backend', str(project_dir))

        registry.remove('backend')

        assert ProfileRegistry(str(config_file)).list() == {}

    def test_remove_unknown(self, config_file):
        with pytest.raises(ValidationError, match="Profile 'missing' not found"):
            ProfileRegistry(str(config_file)).remove('missing')

    def test_get_unknown(self, config_file):
        with pytest.raises(ValidationError, match="Profile 'default' not found"):
            ProfileRegistry(str(config_file)).get_path('default')

    def test_unreadable_config_file(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text('profiles: [broken')

        with pytest.raises(InitError, match='Failed to load profiles'):
            ProfileRegistry(str(config_file))
