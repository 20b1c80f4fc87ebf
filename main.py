from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from docubrand.app import DocuBrandApp, build_app
from docubrand.config import get_settings
from docubrand.errors import DocuBrandError, TemplateDataError
from docubrand.render.pdf_renderer import render_template_sync
from docubrand.storage import write_bytes_atomic
from docubrand.templates.validator import validate_data, validate_template_structure
from docubrand.types import Template


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _error(message: str, **extra: Any) -> int:
    _print_json({'status': 'error', 'message': message, **extra})
    return 2


def _read_json_file(path_value: str) -> Any:
    path = Path(path_value).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f'File not found: {path}')
    return json.loads(path.read_text(encoding='utf-8'))


def _load_template(path_value: str) -> Template:
    return Template.model_validate(_read_json_file(path_value))


def cmd_create(app: DocuBrandApp, args: argparse.Namespace) -> int:
    result = app.assembler.create_from_analysis(_read_json_file(args.analysis))
    if not result.success or result.template is None:
        _print_json(result.to_json_dict())
        return 2
    if args.save:
        app.repository.save(result.template)
    _print_json(result.to_json_dict())
    return 0


def cmd_validate(app: DocuBrandApp, args: argparse.Namespace) -> int:
    result = validate_template_structure(_read_json_file(args.template))
    _print_json(result.to_json_dict())
    return 0 if result.valid else 2


def cmd_validate_data(app: DocuBrandApp, args: argparse.Namespace) -> int:
    result = validate_data(_load_template(args.template), _read_json_file(args.data))
    _print_json(result.to_json_dict())
    return 0 if result.valid else 2


def cmd_render(app: DocuBrandApp, args: argparse.Namespace) -> int:
    template = _load_template(args.template)
    data = _read_json_file(args.data) if args.data else None
    try:
        result = render_template_sync(app.renderer, template, data)
    except TemplateDataError as exc:
        return _error(str(exc), errors=exc.errors)

    out_path = Path(args.out).expanduser().resolve()
    write_bytes_atomic(out_path, result.pdf)
    _print_json(
        {
            'status': 'ok' if not result.errors else 'partial',
            'output': str(out_path),
            'pages': result.page_count,
            'fonts': result.fonts,
            'errors': result.errors,
            'warnings': result.warnings,
        }
    )
    return 0


def cmd_list(app: DocuBrandApp, args: argparse.Namespace) -> int:
    _print_json([summary.to_json_dict() for summary in app.repository.list()])
    return 0


def cmd_search(app: DocuBrandApp, args: argparse.Namespace) -> int:
    _print_json([summary.to_json_dict() for summary in app.repository.search(args.query)])
    return 0


def cmd_delete(app: DocuBrandApp, args: argparse.Namespace) -> int:
    if not app.repository.delete(args.id):
        return _error(f'Template not found: {args.id}')
    _print_json({'status': 'deleted', 'id': args.id})
    return 0


def cmd_fonts(app: DocuBrandApp, args: argparse.Namespace) -> int:
    _print_json(
        [
            {
                'name': font.name,
                'displayName': font.display_name,
                'supportsExtended': font.supports_extended,
                'fallback': font.fallback,
            }
            for font in app.registry.list_all()
        ]
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='DocuBrand template generation and rendering CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    create = sub.add_parser('create', help='Create a template from an analysis result')
    create.add_argument('--analysis', required=True, help='Path to analysis JSON')
    create.add_argument('--save', action='store_true', help='Store the template in the library')
    create.set_defaults(func=cmd_create)

    validate = sub.add_parser('validate', help='Validate template structure')
    validate.add_argument('--template', required=True, help='Path to template JSON')
    validate.set_defaults(func=cmd_validate)

    validate_data_cmd = sub.add_parser('validate-data', help='Validate a data object against a template')
    validate_data_cmd.add_argument('--template', required=True, help='Path to template JSON')
    validate_data_cmd.add_argument('--data', required=True, help='Path to data JSON')
    validate_data_cmd.set_defaults(func=cmd_validate_data)

    render = sub.add_parser('render', help='Render a template to PDF')
    render.add_argument('--template', required=True, help='Path to template JSON')
    render.add_argument('--data', required=False, help='Path to data JSON')
    render.add_argument('--out', required=True, help='Output PDF path')
    render.set_defaults(func=cmd_render)

    list_cmd = sub.add_parser('list', help='List stored templates')
    list_cmd.set_defaults(func=cmd_list)

    search = sub.add_parser('search', help='Search stored templates')
    search.add_argument('--query', required=True)
    search.set_defaults(func=cmd_search)

    delete = sub.add_parser('delete', help='Delete a stored template')
    delete.add_argument('--id', required=True, help='Template ID')
    delete.set_defaults(func=cmd_delete)

    fonts = sub.add_parser('fonts', help='List registered fonts')
    fonts.set_defaults(func=cmd_fonts)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app = build_app(settings)
    try:
        return int(args.func(app, args))
    except (FileNotFoundError, json.JSONDecodeError, ValidationError, DocuBrandError) as exc:
        return _error(str(exc))


if __name__ == '__main__':
    raise SystemExit(main())
