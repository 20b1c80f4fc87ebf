"""Tests for assembling templates from analysis results."""

import json

import pytest

from docubrand.errors import AnalysisInputError
from docubrand.templates.assembler import TemplateAssembler, parse_analysis
from docubrand.templates.builder import SchemaBuilder
from docubrand.templates.validator import validate_data, validate_template_structure
from docubrand.types import SchemaItem, Template


class TestCreateFromAnalysis:
    def test_math_quiz_example(self, assembler, math_quiz_analysis):
        result = assembler.create_from_analysis(math_quiz_analysis)

        assert result.success is True
        assert result.errors == []
        template = result.template
        assert len(template.schemas) == 1
        assert [item.content for item in template.schemas[0]] == [
            'Math Quiz\nAnswer all questions',
            'What is 2 + 2?',
        ]
        assert result.stats.total_pages == 1
        assert result.stats.total_items == 2
        assert result.stats.total_questions == 1
        assert result.stats.sections_processed == 2
        assert validate_template_structure(template).errors == []

    def test_generated_descriptors(self, assembler, math_quiz_analysis):
        template = assembler.create_from_analysis(math_quiz_analysis).template

        assert template.id.startswith('template_')
        assert template.name == 'Math Quiz - Template'
        assert template.description == 'A quiz template for Mathematics with 2 content sections and 1 questions.'
        assert template.category == 'quiz'
        assert template.tags == ['quiz', 'mathematics', 'easy', 'questions', 'multiple-choice']
        assert template.metadata.author == 'DocuBrand Template Generator'
        assert template.metadata.created_at is not None

    def test_i18n_config_names_one_language(self, assembler, math_quiz_analysis):
        i18n = assembler.create_from_analysis(math_quiz_analysis).template.i18n_config

        assert i18n.supported_languages == ['en']
        assert i18n.default_language == 'en'
        assert i18n.languages['en'].font_family == 'NotoSans'
        assert i18n.languages['en'].font_files.regular == '/fonts/NotoSans-Regular.ttf'
        assert i18n.languages['en'].unicode_range == 'U+0000-007F'

    def test_vietnamese_language_config(self, math_quiz_analysis):
        i18n = TemplateAssembler(SchemaBuilder(), language='vi').create_from_analysis(math_quiz_analysis).template.i18n_config

        assert i18n.languages['vi'].unicode_range == 'U+0000-007F,U+0100-017F,U+1EA0-1EF9'

    def test_data_shape_and_sample_data_come_from_extracted_content(self, assembler, math_quiz_analysis):
        template = assembler.create_from_analysis(math_quiz_analysis).template

        assert template.sample_data == {'title': 'Math Quiz', 'instructions': 'Answer all questions\nShow your work'}
        assert set(template.data_schema.properties) == {'title', 'instructions'}
        assert all(prop.type == 'string' for prop in template.data_schema.properties.values())
        assert template.data_schema.required == ['title']
        assert validate_data(template, template.sample_data).valid

    def test_round_trip_through_json_stays_valid(self, assembler, math_quiz_analysis):
        template = assembler.create_from_analysis(math_quiz_analysis).template

        payload = json.loads(json.dumps(template.to_json_dict()))
        restored = Template.model_validate(payload)

        assert validate_template_structure(payload).errors == []
        assert validate_template_structure(restored).errors == []
        assert restored == template

    def test_i18n_config_uses_camel_case_key(self, assembler, math_quiz_analysis):
        payload = assembler.create_from_analysis(math_quiz_analysis).template.to_json_dict()

        assert 'i18nConfig' in payload
        assert 'i18NConfig' not in payload
        restored = Template.model_validate({'name': 't', 'i18nConfig': {'defaultLanguage': 'vi'}})
        assert restored.i18n_config.default_language == 'vi'

    def test_suggestions(self, assembler, math_quiz_analysis):
        math_quiz_analysis['documentStructure']['confidence'] = 0.5
        math_quiz_analysis['extractedQuestions'] = [
            {'id': f'q{i}', 'number': str(i + 1), 'content': f'Question {i}', 'type': 'short_answer'} for i in range(11)
        ]

        result = assembler.create_from_analysis(math_quiz_analysis)

        assert result.success
        assert any('lower confidence' in suggestion for suggestion in result.suggestions)
        assert any('grouping questions' in suggestion for suggestion in result.suggestions)

    def test_structurally_invalid_template_is_never_successful(self, math_quiz_analysis):
        class BrokenBuilder:
            def build_schemas(self, analysis):
                return [[SchemaItem(name='a', type='text', width=10, content='no position or height')]]

        result = TemplateAssembler(BrokenBuilder()).create_from_analysis(math_quiz_analysis)

        assert result.success is False
        assert result.template is None
        assert 'Page 0 item 0: missing required field "height"' in result.errors


class TestMalformedInput:
    @pytest.mark.parametrize(
        'payload, message',
        [
            ({}, 'documentStructure'),
            ({'documentStructure': 'quiz'}, 'documentStructure'),
            ({'documentStructure': {}, 'extractedQuestions': 'none'}, 'extractedQuestions'),
            ([1, 2, 3], 'JSON object'),
        ],
    )
    def test_rejected_before_building(self, assembler, payload, message):
        result = assembler.create_from_analysis(payload)

        assert result.success is False
        assert result.template is None
        assert message in result.errors[0]

    def test_parse_analysis_reports_field_errors(self):
        with pytest.raises(AnalysisInputError) as exc_info:
            parse_analysis({'documentStructure': {'sections': [{'content': 'no id'}]}})

        assert 'documentStructure.sections.0.id' in str(exc_info.value)
