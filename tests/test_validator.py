"""Tests for template structure and data validation."""

import pytest

from docubrand.templates.validator import validate_data, validate_template_structure
from docubrand.types import DataBinding, DataSchema, DataSchemaProperty, SchemaItem, Template, ValidationRules


def _item(name, y=0, **overrides):
    item = {'name': name, 'type': 'text', 'position': {'x': 20, 'y': y}, 'width': 170, 'height': 12}
    item.update(overrides)
    return item


class TestValidateTemplateStructure:
    def test_valid_template(self):
        result = validate_template_structure({'schemas': [[_item('a', 0), _item('b', 20)]]})

        assert result.valid
        assert result.errors == []

    def test_missing_height_names_page_item_and_field(self):
        item = _item('a')
        del item['height']

        result = validate_template_structure({'schemas': [[_item('first', 40), item]]})

        assert not result.valid
        assert result.errors == ['Page 0 item 1: missing required field "height"']

    def test_every_missing_field_is_reported(self):
        result = validate_template_structure({'schemas': [[{'content': 'orphan'}], [_item('x'), {'name': ''}]]})

        assert len(result.errors) == 5 + 5
        assert 'Page 1 item 1: missing required field "name"' in result.errors
        assert 'Page 0 item 0: missing required field "position"' in result.errors

    def test_duplicate_names_report_every_occurrence(self):
        result = validate_template_structure({'schemas': [[_item('a', 0), _item('b', 20), _item('a', 40)]]})

        duplicates = [error for error in result.errors if 'duplicate name' in error]
        assert duplicates == ['Page 0 item 0: duplicate name "a"', 'Page 0 item 2: duplicate name "a"']

    def test_names_only_need_to_be_unique_per_page(self):
        result = validate_template_structure({'schemas': [[_item('a')], [_item('a')]]})

        assert result.valid

    def test_duplicate_detection_is_case_sensitive(self):
        result = validate_template_structure({'schemas': [[_item('Title', 0), _item('title', 20)]]})

        assert result.valid

    def test_non_numeric_size_is_an_error(self):
        result = validate_template_structure({'schemas': [[_item('a', width='wide')]]})

        assert result.errors == ['Page 0 item 0: field "width" must be a number']

    def test_template_without_pages_is_invalid(self):
        assert not validate_template_structure({'schemas': []}).valid
        assert not validate_template_structure({}).valid

    @pytest.mark.parametrize('template', [[], 'quiz', 42, None])
    def test_non_object_template_is_invalid(self, template):
        result = validate_template_structure(template)

        assert result.valid is False
        assert result.errors == ['Template must be a JSON object']

    def test_non_object_i18n_config_is_an_error(self):
        result = validate_template_structure({'schemas': [[_item('a')]], 'i18nConfig': 'en'})

        assert result.valid is False
        assert result.errors == ['i18nConfig must be an object']

    def test_empty_page_and_overlap_are_warnings(self):
        result = validate_template_structure({'schemas': [[_item('a', 0), _item('b', 5)], []]})

        assert result.valid
        assert result.warnings == ['Page 0: items 0 and 1 overlap', 'Page 1 has no items']

    def test_i18n_without_default_language_warns(self):
        template = {
            'schemas': [[_item('a')]],
            'i18nConfig': {'languages': {'en': {'code': 'en'}}},
        }

        result = validate_template_structure(template)

        assert result.valid
        assert 'Default language should be specified' in result.warnings
        assert 'Fallback language should be specified' in result.warnings

    def test_validation_is_idempotent(self):
        template = {'schemas': [[_item('a'), _item('a'), {'name': 'b'}]]}

        first = validate_template_structure(template)
        second = validate_template_structure(template)

        assert first == second
        assert first.errors

    def test_accepts_template_models(self):
        template = Template(
            name='Model',
            schemas=[[SchemaItem(name='a', type='text', width=10, content='no position')]],
        )

        result = validate_template_structure(template)

        assert result.errors == [
            'Page 0 item 0: missing required field "position"',
            'Page 0 item 0: missing required field "height"',
        ]


class TestValidateData:
    @pytest.fixture
    def template(self):
        return Template(
            name='Data',
            schemas=[
                [
                    SchemaItem(
                        name='student',
                        type='text',
                        data_binding=DataBinding(path='student.name'),
                        validation=ValidationRules(required=True, max_length=10),
                    )
                ]
            ],
            data_schema=DataSchema(
                properties={
                    'title': DataSchemaProperty(type='string'),
                    'score': DataSchemaProperty(type='number'),
                    'student': DataSchemaProperty(
                        type='object',
                        properties={
                            'name': DataSchemaProperty(type='string'),
                            'grade': DataSchemaProperty(
                                type='object',
                                properties={'level': DataSchemaProperty(type='integer')},
                            ),
                        },
                        required=['name'],
                    ),
                },
                required=['title'],
            ),
        )

    def test_matching_data_is_valid(self, template):
        result = validate_data(template, {'title': 'Quiz', 'score': 9.5, 'student': {'name': 'An'}})

        assert result.valid
        assert result.errors == []

    def test_extra_keys_are_allowed(self, template):
        result = validate_data(template, {'title': 'Quiz', 'score': 1, 'student': {'name': 'An'}, 'extra': [1, 2]})

        assert result.valid

    def test_missing_required_key_and_type_mismatch(self, template):
        result = validate_data(template, {'score': 'ten', 'student': {'name': 'An'}})

        assert result.errors == [
            'Required field "title" is missing',
            'Field "score" expected number, got string',
        ]

    def test_missing_optional_key_is_a_warning(self, template):
        result = validate_data(template, {'title': 'Quiz', 'student': {'name': 'An'}})

        assert result.valid
        assert result.warnings == ['Optional field "score" is not provided']

    def test_nested_properties_are_checked_one_level_deep(self, template):
        result = validate_data(
            template,
            {'title': 'Quiz', 'score': 1, 'student': {'name': 7, 'grade': {'level': 'not checked'}}},
        )

        assert result.errors == ['Field "student.name" expected string, got integer']

    def test_item_rules_apply_to_bound_values(self, template):
        result = validate_data(template, {'title': 'Quiz', 'score': 1, 'student': {'name': 'A very long name'}})

        assert result.errors == ['Data field student.name is longer than 10 characters']

    def test_malformed_pattern_is_reported_not_raised(self):
        template = Template(
            name='Pattern',
            schemas=[
                [
                    SchemaItem(
                        name='code',
                        type='text',
                        data_binding=DataBinding(path='code'),
                        validation=ValidationRules(pattern='['),
                    )
                ]
            ],
        )

        result = validate_data(template, {'code': 'AB12'})

        assert result.valid is False
        assert len(result.errors) == 1
        assert result.errors[0].startswith('Invalid pattern [ for data field code')

    def test_booleans_are_not_numbers(self, template):
        result = validate_data(template, {'title': 'Quiz', 'score': True, 'student': {'name': 'An'}})

        assert result.errors == ['Field "score" expected number, got boolean']

    def test_non_object_data_is_rejected(self, template):
        result = validate_data(template, ['not', 'an', 'object'])

        assert not result.valid
        assert result.errors == ['Data object is required']

    def test_non_object_template_is_rejected(self):
        assert validate_data(['not', 'a', 'template'], {}).errors == ['Template must be a JSON object']
