from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from docubrand.errors import AnalysisInputError
from docubrand.templates.builder import SchemaBuilder
from docubrand.templates.validator import validate_template_structure
from docubrand.types import (
    AnalysisResult,
    DataSchema,
    DataSchemaProperty,
    FontFiles,
    I18nConfig,
    LanguageConfig,
    QuestionType,
    Template,
    TemplateCategory,
    TemplateCreationResult,
    TemplateMetadata,
    TemplateStats,
)

logger = logging.getLogger(__name__)

LANGUAGE_CONFIGS: dict[str, LanguageConfig] = {
    'en': LanguageConfig(
        code='en',
        name='English',
        font_family='NotoSans',
        fallback_fonts=['Arial', 'Helvetica', 'sans-serif'],
        font_files=FontFiles(
            regular='/fonts/NotoSans-Regular.ttf',
            bold='/fonts/NotoSans-Bold.ttf',
            italic='/fonts/NotoSans-Italic.ttf',
            bold_italic='/fonts/NotoSans-BoldItalic.ttf',
        ),
        unicode_range='U+0000-007F',
    ),
    'vi': LanguageConfig(
        code='vi',
        name='Tiếng Việt',
        font_family='NotoSansVietnamese',
        fallback_fonts=['Arial Unicode MS', 'Tahoma', 'sans-serif'],
        font_files=FontFiles(
            regular='/fonts/NotoSans-Vietnamese-Regular.ttf',
            bold='/fonts/NotoSans-Vietnamese-Bold.ttf',
            italic='/fonts/NotoSans-Vietnamese-Italic.ttf',
            bold_italic='/fonts/NotoSans-Vietnamese-BoldItalic.ttf',
        ),
        unicode_range='U+0000-007F,U+0100-017F,U+1EA0-1EF9',
    ),
}

_CATEGORY_BY_DOCUMENT_TYPE = {
    'quiz': TemplateCategory.quiz.value,
    'worksheet': TemplateCategory.worksheet.value,
    'exam': TemplateCategory.exam.value,
}

LOW_CONFIDENCE_THRESHOLD = 0.8
MAX_ITEMS_PER_PAGE = 20
MAX_QUESTIONS_BEFORE_GROUPING = 10


def _format_pydantic_errors(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()))
        messages.append(f'{location}: {error.get("msg", "invalid value")}' if location else str(error.get('msg')))
    return messages


def parse_analysis(payload: AnalysisResult | Mapping[str, Any]) -> AnalysisResult:
    """Turn an analysis payload into an ``AnalysisResult`` or raise ``AnalysisInputError``."""
    if isinstance(payload, AnalysisResult):
        return payload
    if not isinstance(payload, Mapping):
        raise AnalysisInputError('Analysis result must be a JSON object')

    structure = payload.get('documentStructure', payload.get('document_structure'))
    if not isinstance(structure, Mapping):
        raise AnalysisInputError('Analysis result is missing "documentStructure"')
    questions = payload.get('extractedQuestions', payload.get('extracted_questions', []))
    if not isinstance(questions, list):
        raise AnalysisInputError('"extractedQuestions" must be an array')

    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as exc:
        details = _format_pydantic_errors(exc)
        raise AnalysisInputError('Invalid analysis result: ' + '; '.join(details)) from exc


def _flatten_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return '\n'.join(str(part) for part in value)
    return str(value)


def extracted_content_data(analysis: AnalysisResult) -> dict[str, str]:
    content = analysis.extracted_content.model_dump(exclude_none=True)
    return {key: _flatten_value(value) for key, value in content.items()}


def template_name(analysis: AnalysisResult) -> str:
    title = analysis.extracted_content.title
    subject = analysis.document_structure.subject
    if title:
        return f'{title} - Template'
    if subject:
        return f'{subject} Document Template'
    return 'Document Template'


def template_description(analysis: AnalysisResult) -> str:
    structure = analysis.document_structure
    description = f'A {structure.type} template'
    if structure.subject:
        description += f' for {structure.subject}'
    if structure.sections:
        description += f' with {len(structure.sections)} content sections'
    if analysis.extracted_questions:
        description += f' and {len(analysis.extracted_questions)} questions'
    return description + '.'


def template_category(analysis: AnalysisResult) -> str:
    return _CATEGORY_BY_DOCUMENT_TYPE.get(analysis.document_structure.type, TemplateCategory.educational.value)


def template_tags(analysis: AnalysisResult) -> list[str]:
    structure = analysis.document_structure
    tags: list[str] = []
    if structure.type:
        tags.append(structure.type)
    if structure.subject:
        tags.append(structure.subject.lower())
    if structure.difficulty:
        tags.append(structure.difficulty)
    if analysis.extracted_questions:
        tags.append('questions')
        if any(q.type == QuestionType.multiple_choice.value for q in analysis.extracted_questions):
            tags.append('multiple-choice')
    return list(dict.fromkeys(tags))


class TemplateAssembler:
    def __init__(
        self,
        builder: SchemaBuilder,
        *,
        default_author: str = 'DocuBrand Template Generator',
        language: str = 'en',
        version: str = '1.0.0',
    ):
        self.builder = builder
        self.default_author = default_author
        self.language = language if language in LANGUAGE_CONFIGS else 'en'
        self.version = version

    def i18n_config(self) -> I18nConfig:
        config = LANGUAGE_CONFIGS[self.language]
        return I18nConfig(
            supported_languages=[config.code],
            default_language=config.code,
            fallback_language=config.code,
            languages={config.code: config.model_copy(deep=True)},
        )

    def data_schema(self, sample: Mapping[str, str]) -> DataSchema:
        return DataSchema(
            properties={key: DataSchemaProperty(type='string') for key in sample},
            required=['title'] if 'title' in sample else [],
        )

    def suggestions(self, analysis: AnalysisResult, template: Template) -> list[str]:
        suggestions: list[str] = []
        confidence = analysis.document_structure.confidence
        if confidence is not None and confidence < LOW_CONFIDENCE_THRESHOLD:
            suggestions.append('Consider reviewing the template structure as the AI analysis had lower confidence.')
        if any(len(page) > MAX_ITEMS_PER_PAGE for page in template.schemas):
            suggestions.append('Consider breaking this template into multiple pages for better readability.')
        if len(analysis.extracted_questions) > MAX_QUESTIONS_BEFORE_GROUPING:
            suggestions.append('Consider grouping questions by topic or difficulty level.')
        return suggestions

    def create_from_analysis(self, payload: AnalysisResult | Mapping[str, Any]) -> TemplateCreationResult:
        try:
            analysis = parse_analysis(payload)
        except AnalysisInputError as exc:
            logger.warning('Rejected analysis input: %s', exc)
            return TemplateCreationResult(success=False, errors=[str(exc)])

        schemas = self.builder.build_schemas(analysis)
        sample = extracted_content_data(analysis)
        structure = analysis.document_structure
        template = Template(
            name=template_name(analysis),
            description=template_description(analysis),
            category=template_category(analysis),
            tags=template_tags(analysis),
            schemas=schemas,
            metadata=TemplateMetadata(
                author=self.default_author,
                version=self.version,
                subject=structure.subject,
                difficulty=structure.difficulty,
            ),
            i18n_config=self.i18n_config(),
            data_schema=self.data_schema(sample),
            sample_data=dict(sample),
            version=self.version,
        )

        stats = TemplateStats(
            total_pages=len(template.schemas),
            total_items=template.item_count(),
            total_questions=sum(
                1 for page in template.schemas for item in page if item.educational is not None
            ),
            sections_processed=len(structure.sections),
        )

        validation = validate_template_structure(template)
        if not validation.valid:
            logger.warning('Assembled template %s failed validation: %s', template.id, validation.errors)
            return TemplateCreationResult(
                success=False,
                stats=stats,
                errors=validation.errors,
                warnings=validation.warnings,
            )

        logger.info(
            'Assembled template %s: %d pages, %d items, %d questions',
            template.id,
            stats.total_pages,
            stats.total_items,
            stats.total_questions,
        )
        return TemplateCreationResult(
            success=True,
            template=template,
            stats=stats,
            warnings=validation.warnings,
            suggestions=self.suggestions(analysis, template),
        )
