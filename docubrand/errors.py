from __future__ import annotations


class DocuBrandError(Exception):
    """Base class for errors raised by the template system."""


class AnalysisInputError(DocuBrandError, ValueError):
    """The analysis payload does not have the expected shape."""


class FontUnavailableError(DocuBrandError):
    """A font source could not provide bytes for a family."""

    def __init__(self, family: str, reason: str):
        super().__init__(f'font {family!r} unavailable: {reason}')
        self.family = family
        self.reason = reason


class TemplateNotFoundError(DocuBrandError, KeyError):
    def __init__(self, template_id: str):
        super().__init__(template_id)
        self.template_id = template_id

    def __str__(self) -> str:
        return f'Template not found: {self.template_id}'


class TemplateDataError(DocuBrandError):
    """Data bound to a template failed validation."""

    def __init__(self, errors: list[str]):
        first = errors[0] if errors else 'unknown error'
        super().__init__(f'Data validation failed: {first}')
        self.errors = list(errors)


class TemplateStorageError(DocuBrandError):
    """A durable template write or delete failed."""


class TemplateImportError(DocuBrandError, ValueError):
    """An imported template document is unreadable or structurally invalid."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])
