"""
Template variable resolution.

Strings in a configuration tree may embed expressions of the form

    {{ personal.name | uppercase }}
    {{ personal.bio | truncate:155 }}
    {{ runtime.buildTime | date:%Y-%m-%d }}

A path is looked up in the assembled context and the listed functions are
applied left to right. Paths starting with `env.`, `runtime.` or `custom.`
address those namespaces; anything else is looked up in the configuration
itself and then in the custom variables.

An expression that cannot be resolved (missing path, unknown or failing
function, reference cycle) is left in place verbatim and a warning is logged.
Unresolved placeholders are final: running the resolver again over its own
output changes nothing.
"""

import json
import random as _random
import re
import uuid as _uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from archfolio.logger import get_archfolio_logger

from .core.tree import get_path, walk_strings
from .core.validator import ValidationError, ValidationResult

TEMPLATE_PATTERN = re.compile(r'\{\{([^{}]*)\}\}')
_INDEX_PATTERN = re.compile(r'\[(\d+)\]')
_NUMBER_PATTERN = re.compile(r'^-?\d+(\.\d+)?$')

MAX_REFERENCE_DEPTH = 10

_MISSING = object()


class UnresolvedExpression(Exception):
    """Raised internally when an expression cannot be resolved."""


def _words(value: str) -> List[str]:
    spaced = re.sub(r'([a-z0-9])([A-Z])', r'\1 \2', value)
    return [word for word in re.split(r'[^A-Za-z0-9]+', spaced) if word]


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


def _camel_case(value: str) -> str:
    words = _words(value)
    if not words:
        return ''
    return words[0].lower() + ''.join(_capitalize(word.lower()) for word in words[1:])


def _kebab_case(value: str) -> str:
    return '-'.join(word.lower() for word in _words(value))


def _snake_case(value: str) -> str:
    return '_'.join(word.lower() for word in _words(value))


def _slugify(value: str) -> str:
    slug = re.sub(r'[^\w\s-]', '', value.lower())
    slug = re.sub(r'[\s_-]+', '-', slug)
    return slug.strip('-')


def _truncate(value: str, length: int = 50) -> str:
    length = int(length)
    return value[:length] + '...' if len(value) > length else value


STRING_FUNCTIONS: Dict[str, Callable[..., str]] = {
    'uppercase': lambda value: value.upper(),
    'lowercase': lambda value: value.lower(),
    'capitalize': _capitalize,
    'camelCase': _camel_case,
    'kebabCase': _kebab_case,
    'snakeCase': _snake_case,
    'slugify': _slugify,
    'truncate': _truncate,
}

FUNCTION_ALIASES = {
    'upper': 'uppercase',
    'lower': 'lowercase',
    'camel': 'camelCase',
    'kebab': 'kebabCase',
    'snake': 'snakeCase',
}


@dataclass
class TemplateContext:
    """Namespaces an expression can be resolved against."""
    config: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)
    runtime: Dict[str, Any] = field(default_factory=dict)
    custom: Dict[str, Any] = field(default_factory=dict)


def create_template_context(config: Dict[str, Any], env: Optional[Dict[str, str]] = None,
                            runtime: Optional[Dict[str, Any]] = None,
                            custom_vars: Optional[Dict[str, Any]] = None,
                            now: Optional[datetime] = None) -> TemplateContext:
    """Assemble a context; `custom` always carries currentYear, buildTime and timestamp."""
    now = now or datetime.now(timezone.utc)
    custom = {
        'currentYear': now.year,
        'buildTime': now.isoformat(),
        'timestamp': int(now.timestamp() * 1000),
    }
    custom.update(custom_vars or {})
    return TemplateContext(
        config=config,
        env=dict(env or {}),
        runtime=dict(runtime or {}),
        custom=custom,
    )


class TemplateEngine:
    """
    Resolves `{{path|fn:arg}}` expressions in strings and trees.

    Parameters
    ----------
    clock : callable, optional
        Returns the current `datetime`; used by `date` and `year`
    rng : random.Random, optional
        Source for the `random` function
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None,
                 rng: Optional[_random.Random] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.rng = rng or _random.Random()
        self.logger = get_archfolio_logger().bind(component="TemplateEngine")
        self.functions: Dict[str, Callable[..., str]] = dict(STRING_FUNCTIONS)
        self.functions.update({
            'date': self._date,
            'year': self._year,
            'uuid': self._uuid,
            'random': self._random,
        })

    def register_function(self, name: str, function: Callable[..., str]):
        """Add a template function taking the current value and its arguments."""
        self.functions[name] = function

    # Built-ins that do not transform the incoming value

    def _date(self, _value: str, *args: Any) -> str:
        fmt = ':'.join(str(arg) for arg in args)
        now = self.clock()
        if not fmt:
            return now.strftime('%a %b %d %Y %H:%M:%S')
        if fmt == 'iso':
            return now.isoformat()
        if fmt == 'short':
            return now.strftime('%m/%d/%Y')
        if fmt == 'long':
            return f"{now.strftime('%B')} {now.day}, {now.year}"
        return now.strftime(fmt)

    def _year(self, _value: str, *_args: Any) -> str:
        return str(self.clock().year)

    def _uuid(self, _value: str, *_args: Any) -> str:
        return str(_uuid.uuid4())

    def _random(self, _value: str, minimum: Any = 0, maximum: Any = 100, *_args: Any) -> str:
        return str(self.rng.randint(int(minimum), int(maximum)))

    # Resolution

    def resolve_string(self, template: str, context: TemplateContext,
                       unresolved: Optional[List[str]] = None) -> str:
        """Replace every expression in `template`; unresolvable ones stay literal."""
        return self._render(template, context, unresolved, ())

    def resolve_tree(self, tree: Any, context: TemplateContext,
                     unresolved: Optional[List[str]] = None) -> Any:
        """Return a copy of `tree` with every string leaf resolved."""
        return self._render_value(tree, context, unresolved, ())

    def _render_value(self, value: Any, context: TemplateContext,
                      unresolved: Optional[List[str]], stack: Tuple[str, ...]) -> Any:
        if isinstance(value, str):
            return self._render(value, context, unresolved, stack)
        if isinstance(value, list):
            return [self._render_value(item, context, unresolved, stack) for item in value]
        if isinstance(value, dict):
            return {key: self._render_value(item, context, unresolved, stack) for key, item in value.items()}
        return value

    def _render(self, template: str, context: TemplateContext,
                unresolved: Optional[List[str]], stack: Tuple[str, ...]) -> str:
        if '{{' not in template:
            return template

        def replace(match: re.Match) -> str:
            expression = match.group(1).strip()
            try:
                return self._evaluate(expression, context, unresolved, stack)
            except UnresolvedExpression as e:
                self.logger.warning("Unresolved template expression", expression=expression, reason=str(e))
                if unresolved is not None and expression not in unresolved:
                    unresolved.append(expression)
                return match.group(0)

        return TEMPLATE_PATTERN.sub(replace, template)

    def _evaluate(self, expression: str, context: TemplateContext,
                  unresolved: Optional[List[str]], stack: Tuple[str, ...]) -> str:
        if not expression:
            raise UnresolvedExpression("empty expression")

        path, *calls = [part.strip() for part in expression.split('|')]
        value = self._lookup(path, context)
        if value is _MISSING:
            raise UnresolvedExpression(f"'{path}' is not defined")

        if not path.startswith(('env.', 'runtime.', 'custom.')) and contains_template(value):
            # The referenced config value holds templates itself
            if path in stack or len(stack) >= MAX_REFERENCE_DEPTH:
                raise UnresolvedExpression(f"reference cycle through '{path}'")
            value = self._render_value(value, context, unresolved, stack + (path,))

        result = self._stringify(value)
        for call in calls:
            result = self._apply(call, result)
        return result

    def _lookup(self, path: str, context: TemplateContext) -> Any:
        path = _INDEX_PATTERN.sub(r'.\1', path)
        if path.startswith('env.'):
            return context.env.get(path[len('env.'):], _MISSING)
        if path.startswith('runtime.'):
            return get_path(context.runtime, path[len('runtime.'):].split('.'), _MISSING)
        if path.startswith('custom.'):
            return get_path(context.custom, path[len('custom.'):].split('.'), _MISSING)

        segments = path.split('.')
        value = get_path(context.config, segments, _MISSING)
        if value is _MISSING:
            value = get_path(context.custom, segments, _MISSING)
        return value

    def _apply(self, call: str, value: str) -> str:
        name, _, raw_args = call.partition(':')
        name = FUNCTION_ALIASES.get(name.strip(), name.strip())
        function = self.functions.get(name)
        if function is None:
            raise UnresolvedExpression(f"unknown template function '{name}'")

        args = [self._parse_arg(arg) for arg in raw_args.split(':')] if raw_args else []
        try:
            return str(function(value, *args))
        except (TypeError, ValueError) as e:
            raise UnresolvedExpression(f"template function '{name}' failed: {e}") from e

    @staticmethod
    def _parse_arg(arg: str) -> Any:
        arg = arg.strip()
        if _NUMBER_PATTERN.match(arg):
            return float(arg) if '.' in arg else int(arg)
        return arg

    @staticmethod
    def _stringify(value: Any) -> str:
        if value is None:
            return ''
        if isinstance(value, str):
            return value
        if isinstance(value, (bool, dict, list)):
            return json.dumps(value)
        return str(value)

    # Inspection helpers

    def validate_template(self, template: str) -> ValidationResult:
        """Report empty expressions and unknown functions without resolving anything."""
        result = ValidationResult()
        for match in TEMPLATE_PATTERN.finditer(template):
            expression = match.group(1).strip()
            if not expression:
                result.add_error(ValidationError(
                    f"Empty template variable at position {match.start()}", field=expression
                ))
                continue
            _, *calls = [part.strip() for part in expression.split('|')]
            for call in calls:
                name = call.partition(':')[0].strip()
                if FUNCTION_ALIASES.get(name, name) not in self.functions:
                    result.add_error(ValidationError(f"Unknown template function: {name}", field=expression))
        return result


def extract_variables(tree: Any) -> List[str]:
    """Distinct expressions found in every string leaf of `tree`, in first-seen order."""
    found: List[str] = []
    for text in walk_strings(tree):
        for match in TEMPLATE_PATTERN.finditer(text):
            expression = match.group(1).strip()
            if expression and expression not in found:
                found.append(expression)
    return found


def contains_template(value: Any) -> bool:
    return any(TEMPLATE_PATTERN.search(text) for text in walk_strings(value))
