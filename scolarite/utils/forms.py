import logging

from pydantic import ValidationError

from scolarite.models import (
    EleveCreate, EleveUpdate, MatiereCreate, MatiereUpdate,
    ExamenCreate, ExamenUpdate, NoteCreate, NoteUpdate,
)

logger = logging.getLogger(__name__)

SCHEMAS = {
    'eleves': (EleveCreate, EleveUpdate),
    'matieres': (MatiereCreate, MatiereUpdate),
    'examens': (ExamenCreate, ExamenUpdate),
    'notes': (NoteCreate, NoteUpdate),
}


def field_errors(exc, schema):
    """Map a pydantic ValidationError to one message per form field."""
    messages = getattr(schema, 'messages', {})
    errors = {}
    for error in exc.errors():
        name = str(error['loc'][0]) if error['loc'] else '__all__'
        if name in errors:
            continue
        errors[name] = messages.get((name, error['type'])) or messages.get(name) or error['msg']
    return errors


def clean_form(form, fields):
    data = {}
    for name in fields:
        value = form.get(name)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if value == '':
                continue
        data[name] = value
    return data


def validate(schema, data):
    """Return ``(payload, errors)``; exactly one of them is ``None``."""
    try:
        return schema.model_validate(data), None
    except ValidationError as e:
        errors = field_errors(e, schema)
        logger.info(f"{schema.__name__} rejected: {errors}")
        return None, errors


def validate_create(kind, form):
    schema = SCHEMAS[kind][0]
    return validate(schema, clean_form(form, schema.model_fields))


def validate_update(kind, form):
    schema = SCHEMAS[kind][1]
    return validate(schema, clean_form(form, schema.model_fields))


def validate_field(kind, name, value):
    """Validate one answer of a step-by-step form; returns ``(value, error)``."""
    schema = SCHEMAS[kind][1]
    if isinstance(value, str):
        value = value.strip()
    if value is None or value == '':
        return None, SCHEMAS[kind][0].messages.get(name, 'Champ requis')
    payload, errors = validate(schema, {name: value})
    if errors:
        return None, errors.get(name) or next(iter(errors.values()))
    return getattr(payload, name), None
