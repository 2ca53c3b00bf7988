"""Tests for answering task prompts through an asker"""

import pytest

from ctgen.asker import ask_prompts, ask_rendered_prompt
from ctgen.exceptions import ValidationError
from ctgen.task import RenderedPrompt
from tests.fixtures.fakes import FakeAsker

PROMPTS = {
    'module': {'prompt': 'Module for {{ table_name }}', 'required': True},
    'api': {'prompt': 'Generate API?', 'options': {'0': 'No', '1': 'Yes'}},
    'columns': {
        'condition': '{{ prompts.api }}',
        'prompt': 'Columns to expose',
        'options': "{{ table.column_names()|join(',') }}",
        'multiple': True,
        'ordered': True,
    },
    'labels': {
        'enumerate': "{{ table.column_names()|join(',') }}",
        'condition': "{% if item != 'id' %}1{% endif %}",
        'prompt': 'Label for {{ item }}',
    },
}


@pytest.mark.unit
class TestAskRenderedPrompt:
    """Test which widget answers a rendered prompt"""

    def test_confirm(self):
        asker = FakeAsker([True, False])
        rendered = RenderedPrompt(ask=True, prompt='API?', options={'0': 'No', '1': 'Yes'}, default='1')

        assert ask_rendered_prompt(asker, rendered) == '1'
        assert ask_rendered_prompt(asker, rendered) == '0'
        assert asker.calls[0] == ('confirm', 'API?', True)

    def test_free_text(self):
        asker = FakeAsker(['Billing'])
        rendered = RenderedPrompt(ask=True, prompt='Module', default='Users')

        assert ask_rendered_prompt(asker, rendered) == 'Billing'
        assert asker.calls == [('input', 'Module', 'Users')]

    def test_select_from_list(self):
        asker = FakeAsker(['sqlite'])
        rendered = RenderedPrompt(ask=True, prompt='Driver', options=['mysql', 'sqlite'])

        assert ask_rendered_prompt(asker, rendered) == 'sqlite'
        assert asker.calls == [('select', 'Driver', ['mysql', 'sqlite'])]

    def test_select_from_mapping_returns_key(self):
        """Test labels are shown and the chosen label's key is the answer"""
        asker = FakeAsker(['PostgreSQL'])
        rendered = RenderedPrompt(ask=True, prompt='Driver', options={'my': 'MySQL', 'pg': 'PostgreSQL'})

        assert ask_rendered_prompt(asker, rendered) == 'pg'
        assert asker.calls[0][2] == ['MySQL', 'PostgreSQL']

    def test_multi_select_keeps_chosen_order(self):
        asker = FakeAsker([['PostgreSQL', 'MySQL']])
        rendered = RenderedPrompt(
            ask=True, prompt='Drivers', options={'my': 'MySQL', 'pg': 'PostgreSQL'}, multiple=True, ordered=True
        )

        assert ask_rendered_prompt(asker, rendered) == ['pg', 'my']
        assert asker.calls[0] == ('multi_select', 'Drivers', (['MySQL', 'PostgreSQL'], True))


@pytest.mark.unit
class TestAskPrompts:
    """Test the full prompt loop"""

    def test_asks_everything_in_order(self, make_task, unbound_schema_source):
        task = make_task(prompts=PROMPTS, table=None, source=unbound_schema_source)
        asker = FakeAsker(['shop', 'users', 'Billing', True, ['email', 'name'], 'Full name', 'E-mail'])

        ask_prompts(task, asker)

        assert [kind for kind, _, _ in asker.calls] == [
            'select',
            'select',
            'input',
            'confirm',
            'multi_select',
            'input',
            'input',
        ]
        assert asker.calls[0] == ('select', 'Select database', ['shop'])
        assert asker.calls[1] == ('select', 'Select table', ['users', 'orders', 'products'])
        assert asker.calls[2][1] == 'Module for users'
        assert [prompt for _, prompt, _ in asker.calls[5:]] == ['Label for name', 'Label for email']

        assert task.is_context_ready()
        assert task.answers == {
            'module': 'Billing',
            'api': '1',
            'columns': ['email', 'name'],
            'labels': {'name': 'Full name', 'email': 'E-mail'},
        }
        assert asker.messages == []

    def test_unmet_condition_is_skipped(self, make_task):
        task = make_task(prompts=PROMPTS)
        asker = FakeAsker(['Billing', False, 'Full name', 'E-mail'])

        ask_prompts(task, asker)

        assert task.prompt_answer('columns') == ''
        assert 'multi_select' not in [kind for kind, _, _ in asker.calls]

    def test_enumeration_without_asked_items_is_skipped(self, make_task):
        prompts = {'labels': {'enumerate': "{{ '' }}", 'prompt': 'Label for {{ item }}'}}
        task = make_task(prompts=prompts)

        ask_prompts(task, FakeAsker())
        assert task.prompt_answer('labels') == ''
        assert task.is_context_ready()

    def test_preset_answers_are_not_asked(self, make_task):
        task = make_task(prompts=PROMPTS)
        asker = FakeAsker(['Full name', 'E-mail'])

        ask_prompts(task, asker, {'module': 'Billing', 'api': '1', 'columns': ['id', 'name']})

        assert task.answers['module'] == 'Billing'
        assert task.answers['columns'] == ['id', 'name']
        assert [kind for kind, _, _ in asker.calls] == ['input', 'input']

    def test_unknown_preset(self, make_task):
        task = make_task(prompts=PROMPTS)

        with pytest.raises(ValidationError, match='Unknown prompt: modul'):
            ask_prompts(task, FakeAsker(), {'modul': 'Billing'})

    def test_blank_required_preset(self, make_task):
        task = make_task(prompts=PROMPTS)

        with pytest.raises(ValidationError, match='a value is required'):
            ask_prompts(task, FakeAsker(), {'module': ''})

    def test_invalid_table_is_asked_again(self, make_task):
        task = make_task(table=None)
        asker = FakeAsker(['invoices', 'orders'])

        ask_prompts(task, asker)

        assert task.table == 'orders'
        assert asker.messages == ['Table does not exist: invoices']
        assert len(asker.calls) == 2

    def test_unknown_table_given_before_database_is_asked_again(self, make_task, unbound_schema_source):
        """Test a table that is missing from the chosen database leads to a table selection"""
        task = make_task(prompts={'module': PROMPTS['module']}, table='invoices', source=unbound_schema_source)
        asker = FakeAsker(['shop', 'orders', 'Billing'])

        ask_prompts(task, asker)

        assert [(kind, prompt) for kind, prompt, _ in asker.calls] == [
            ('select', 'Select database'),
            ('select', 'Select table'),
            ('input', 'Module for orders'),
        ]
        assert asker.messages == ['Table does not exist: invoices']
        assert task.table == 'orders'
        assert task.is_context_ready()

    def test_blank_required_answer_is_asked_again(self, make_task):
        task = make_task(prompts={'module': PROMPTS['module']})
        asker = FakeAsker(['  ', 'Billing'])

        ask_prompts(task, asker)

        assert task.prompt_answer('module') == 'Billing'
        assert len(asker.messages) == 1
        assert 'a value is required' in asker.messages[0]
