# tests/conftest.py
"""
Shared pytest configuration and fixtures for the ctgen test suite.
"""

import logging
import os
from pathlib import Path

import pytest

from ctgen.profile import Profile
from ctgen.task import Task
from tests.fixtures.fakes import FakeSchemaSource

logging.basicConfig(level=logging.INFO)

TEMPLATES = {
    'readme': '# {{ table_name }}\n\nGenerated by ctgen {{ ctgen_ver }}\n',
    'model': (
        'class {{ table_name|pascal_case }}:\n'
        '{% for column in table.columns %}\n'
        '    {{ column.name }}: str\n'
        '{% endfor %}\n'
    ),
    'note': '{{ prompts.module }}\n',
}


@pytest.fixture
def templates_dir(tmp_path) -> Path:
    """Templates directory holding the TEMPLATES above"""
    path = tmp_path / 'templates'
    path.mkdir()
    for name, body in TEMPLATES.items():
        (path / f'{name}.jinja').write_text(body)
    return path


@pytest.fixture
def context_dir(tmp_path) -> Path:
    path = tmp_path / 'project'
    path.mkdir()
    return path


@pytest.fixture
def schema_source():
    """Fake source whose connection already has the shop database bound"""
    return FakeSchemaSource()


@pytest.fixture
def unbound_schema_source():
    """Fake source whose connection has no database bound"""
    return FakeSchemaSource(database_name='')


@pytest.fixture
def make_profile(templates_dir):
    """Factory building a validated profile from prompt/target definitions"""

    def _make(prompts=None, targets=None, directives=None):
        config = {
            'name': 'test',
            'dsn': 'fake://localhost/shop',
            'target-dir': 'out',
            'templates-dir': str(templates_dir),
            'prompts': list((prompts or {}).keys()),
            'targets': list((targets or {}).keys()),
        }
        config.update(directives or {})
        return Profile.from_dict({'profile': config, 'prompt': prompts or {}, 'target': targets or {}})

    return _make


@pytest.fixture
def make_task(make_profile, context_dir, schema_source):
    """Factory building a Task over the fake schema source"""

    def _make(prompts=None, targets=None, table='users', directives=None, source=None, overrides=None):
        profile = make_profile(prompts, targets, directives)
        return Task(profile, context_dir, table, overrides, schema_source=source or schema_source)

    return _make


@pytest.fixture
def clean_env_var():
    """Environment variable name that is unset before and after the test"""
    name = 'CTGEN_TEST_DSN'
    os.environ.pop(name, None)
    yield name
    os.environ.pop(name, None)
