"""
Fixtures backed by a real SQLite database file and on-disk profiles.
"""

from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

SCHEMA = [
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name VARCHAR(100) NOT NULL,
        email VARCHAR(255) UNIQUE
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        user_id INTEGER NOT NULL,
        total NUMERIC(10, 2),
        CONSTRAINT fk_orders_user FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
    )
    """,
    'CREATE INDEX ix_orders_user_id ON orders (user_id)',
]

PROFILE_YAML = """
profile:
  name: shop
  target-dir: out
  templates-dir: templates
  prompts: [ids, module]
  targets: [readme, relations]
prompt:
  ids:
    prompt: Record ids
  module:
    prompt: Module for {{ table_name }}
    default: "{{ table_name|pascal_case }}"
target:
  readme:
    template: readme
    target: README.md
  relations:
    template: relations
    target: "{{ table_name|snake_case }}_relations.txt"
"""

TEMPLATES = {
    'readme': '# {{ table_name }}\n\nGenerated by ctgen {{ ctgen_ver }}\n',
    'relations': (
        'module: {{ prompts.module }}\n'
        "ids: {{ prompts.ids|join('|') }}\n"
        '{% for c in constraints_local %}\n'
        "{{ c.local_columns|join(',') }} -> {{ c.foreign_table }}({{ c.foreign_columns|join(',') }}) {{ c.on_delete }}\n"
        '{% endfor %}\n'
        '{% for c in constraints_foreign %}\n'
        "{{ c.local_table }}.{{ c.local_columns|join(',') }} references this table\n"
        '{% endfor %}\n'
    ),
}


@pytest.fixture
def sqlite_dsn(tmp_path) -> str:
    """DSN of a SQLite file holding users and orders"""
    path = tmp_path / 'shop.db'
    dsn = f'sqlite:///{path}'

    engine = create_engine(dsn)
    with engine.begin() as conn:
        for statement in SCHEMA:
            conn.execute(text(statement))
    engine.dispose()
    return dsn


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """Project directory with a Ctgen.yml and its templates"""
    path = tmp_path / 'project'
    templates = path / 'templates'
    templates.mkdir(parents=True)
    (path / 'Ctgen.yml').write_text(PROFILE_YAML)
    for name, body in TEMPLATES.items():
        (templates / f'{name}.jinja').write_text(body)
    return path
