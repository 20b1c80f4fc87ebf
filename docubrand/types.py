from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_template_id() -> str:
    return f'template_{uuid4().hex}'


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class SemanticRole(str, Enum):
    header = 'header'
    title = 'title'
    content = 'content'
    instruction = 'instruction'
    other = 'other'


class QuestionType(str, Enum):
    multiple_choice = 'multiple_choice'
    short_answer = 'short_answer'
    essay = 'essay'
    fill_blank = 'fill_blank'
    true_false = 'true_false'


class SchemaType(str, Enum):
    text = 'text'
    image = 'image'
    table = 'table'
    multiple_choice = 'multiple_choice'
    short_answer = 'short_answer'
    essay = 'essay'
    fill_blank = 'fill_blank'
    true_false = 'true_false'
    instruction_box = 'instruction_box'


QUESTION_SCHEMA_TYPES = frozenset(
    {
        SchemaType.multiple_choice.value,
        SchemaType.short_answer.value,
        SchemaType.essay.value,
        SchemaType.fill_blank.value,
        SchemaType.true_false.value,
    }
)


class TextAlignment(str, Enum):
    left = 'left'
    center = 'center'
    right = 'right'


class TemplateCategory(str, Enum):
    quiz = 'quiz'
    worksheet = 'worksheet'
    exam = 'exam'
    educational = 'educational'
    general = 'general'


# --- Analysis input -----------------------------------------------------------


class SourcePosition(CamelModel):
    page: int = 1
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class Section(CamelModel):
    id: str
    semantic_role: str | None = None
    type: str | None = None
    content: str = ''
    position: SourcePosition = Field(default_factory=SourcePosition)
    confidence: float = 0.0

    @property
    def label(self) -> str:
        return self.semantic_role or self.type or SemanticRole.other.value


class DocumentStructure(CamelModel):
    type: str = 'general'
    subject: str | None = None
    difficulty: str | None = None
    confidence: float | None = None
    sections: list[Section] = Field(default_factory=list)


class ExtractedQuestion(CamelModel):
    id: str
    number: str = ''
    content: str = ''
    type: str = QuestionType.short_answer.value
    options: list[str] | None = None
    correct_answer: str | None = None
    points: float | None = None
    difficulty: str | None = None
    confidence: float = 0.0


class ExtractedContent(CamelModel):
    title: str | None = None
    subtitle: str | None = None
    author: str | None = None
    instructions: list[str] | str | None = None


class AnalysisResult(CamelModel):
    document_structure: DocumentStructure
    extracted_questions: list[ExtractedQuestion] = Field(default_factory=list)
    extracted_content: ExtractedContent = Field(default_factory=ExtractedContent)


# --- Template -----------------------------------------------------------------


class Position(CamelModel):
    x: float
    y: float


class DataBinding(CamelModel):
    path: str
    fallback: str | None = None


class EducationalMeta(CamelModel):
    question_type: str | None = None
    correct_answer: str | None = None
    points: float | None = None
    difficulty: str | None = None


class ValidationRules(CamelModel):
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


class SchemaItem(CamelModel):
    # Required attributes stay optional here; the validator reports their absence.
    name: str | None = None
    type: str | None = None
    position: Position | None = None
    width: float | None = None
    height: float | None = None

    content: str = ''
    label: str | None = None
    question: str | None = None
    number: str | None = None
    options: list[str] | None = None

    font_size: float | None = None
    font_name: str | None = None
    font_color: str | None = None
    alignment: TextAlignment = TextAlignment.left
    line_height: float | None = None

    data_binding: DataBinding | None = None
    educational: EducationalMeta | None = None
    validation: ValidationRules | None = None


class BasePdf(CamelModel):
    width: float = 210.0
    height: float = 297.0
    padding: list[float] = Field(default_factory=lambda: [20.0, 20.0, 20.0, 20.0])
    path: str | None = None


class TemplateMetadata(CamelModel):
    author: str = ''
    version: str = '1.0.0'
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    subject: str | None = None
    difficulty: str | None = None


class FontFiles(CamelModel):
    regular: str
    bold: str | None = None
    italic: str | None = None
    bold_italic: str | None = None


class LanguageConfig(CamelModel):
    code: str
    name: str
    direction: str = 'ltr'
    font_family: str
    fallback_fonts: list[str] = Field(default_factory=list)
    font_files: FontFiles
    unicode_range: str


class I18nConfig(CamelModel):
    supported_languages: list[str] = Field(default_factory=list)
    default_language: str | None = None
    fallback_language: str | None = None
    languages: dict[str, LanguageConfig] = Field(default_factory=dict)


class DataSchemaProperty(CamelModel):
    type: str = 'string'
    properties: dict[str, DataSchemaProperty] | None = None
    required: list[str] | None = None
    description: str | None = None


class DataSchema(CamelModel):
    type: str = 'object'
    properties: dict[str, DataSchemaProperty] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class Template(CamelModel):
    id: str = Field(default_factory=new_template_id)
    name: str
    description: str = ''
    category: str = TemplateCategory.general.value
    tags: list[str] = Field(default_factory=list)
    base_pdf: BasePdf = Field(default_factory=BasePdf)
    schemas: list[list[SchemaItem]] = Field(default_factory=list)
    metadata: TemplateMetadata = Field(default_factory=TemplateMetadata)
    i18n_config: I18nConfig = Field(default_factory=I18nConfig, alias='i18nConfig')
    data_schema: DataSchema = Field(default_factory=DataSchema)
    sample_data: dict[str, Any] = Field(default_factory=dict)
    version: str = '1.0.0'

    def item_count(self) -> int:
        return sum(len(page) for page in self.schemas)


# --- Results ------------------------------------------------------------------


class ValidationResult(CamelModel):
    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TemplateStats(CamelModel):
    total_pages: int = 0
    total_items: int = 0
    total_questions: int = 0
    sections_processed: int = 0


class TemplateCreationResult(CamelModel):
    success: bool
    template: Template | None = None
    stats: TemplateStats | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class TemplateSummary(CamelModel):
    id: str
    name: str
    description: str = ''
    category: str = TemplateCategory.general.value
    tags: list[str] = Field(default_factory=list)
    author: str = ''
    version: str = '1.0.0'
    page_count: int = 0
    item_count: int = 0
    supported_languages: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_template(cls, template: Template) -> TemplateSummary:
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            category=template.category,
            tags=list(template.tags),
            author=template.metadata.author,
            version=template.version,
            page_count=len(template.schemas),
            item_count=template.item_count(),
            supported_languages=list(template.i18n_config.supported_languages),
            updated_at=template.metadata.updated_at,
        )
