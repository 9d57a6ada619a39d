"""
SWQL Query Utilities

This module rewrites SWQL query text before it is sent to SWIS:
- `$from` / `$to` time placeholders become the `@timeFrom` / `@timeTo` query parameters
- the `downsample(<expr>)` macro expands to an epoch-anchored bucketing expression
- a `WITH GRANULARITY` clause is appended when the macro is used without one
- template variables (`$name`, `${name}`) are interpolated with SWQL quoting
"""
import logging
import re
from typing import Any, Callable, Dict, Mapping, Optional

from swis_datasource_toolkit.core.models import TemplateVariable, TimeRange
from swis_datasource_toolkit.core.settings import DEFAULT_INTERVAL_MS
from swis_datasource_toolkit.core.utils.time_utils import format_timespan

logger = logging.getLogger(__name__)

# The capture stops at the first closing parenthesis, so `downsample(f(x))` is not supported.
DOWNSAMPLE_PATTERN = re.compile(r'downsample\(([^)]*)\)')
# The expansion's own `@granularity` parameter is not a directive
GRANULARITY_PATTERN = re.compile(r'(?<!@)\bGRANULARITY\b', re.IGNORECASE)

DOWNSAMPLE_EXPANSION = (
    "ADDSECOND(FLOOR(SecondDiff('1970-01-01T00:00:00', {expr})/@granularity+1)*@granularity, "
    "'1970-01-01T00:00:00')"
)

SCHEMA_ONLY_DIRECTIVE = ' WITH SCHEMAONLY'

InterpolationCallback = Callable[[Any, TemplateVariable], Any]


def replace_time_placeholders(text: str) -> str:
    return text.replace('$from', '@timeFrom').replace('$to', '@timeTo')


def expand_downsample(text: str) -> str:
    return DOWNSAMPLE_PATTERN.sub(lambda m: DOWNSAMPLE_EXPANSION.format(expr=m.group(1)), text)


def resolve_macros(text: str, time_range: Optional[TimeRange] = None, interval_ms: Optional[int] = None) -> str:
    """
    Rewrite a SWQL query into the text sent to SWIS.

    The time range itself is never inlined; `$from` / `$to` become named parameters
    that are bound from the request parameters, so both phases of a query refer to
    the exact same instants.

    Args:
        text: Raw query text (template variables already interpolated)
        time_range: Time range of the request; intentionally unused, the bounds are sent
            as the `timeFrom` / `timeTo` parameters
        interval_ms: Bucket size in milliseconds; 0 or None means one second

    Returns:
        The rewritten query text
    """
    resolved = replace_time_placeholders(text)
    if 'downsample(' not in resolved:
        return resolved

    resolved = expand_downsample(resolved)
    if not GRANULARITY_PATTERN.search(resolved):
        resolved += f" WITH GRANULARITY '{format_timespan(interval_ms or DEFAULT_INTERVAL_MS)}'"

    if resolved != text:
        logger.debug(f"SWQL query resolved: {text!r} -> {resolved!r}")
    return resolved


def with_schema_only(text: str) -> str:
    return text + SCHEMA_ONLY_DIRECTIVE


def quote_swql_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def interpolate_variable(value: Any, variable: TemplateVariable) -> Any:
    """
    Format one template variable value for inclusion in SWQL.

    String values of multi-valued or include-all variables are quoted so a list
    renders as `'a','b'` inside an `IN (...)` clause; single-valued strings are
    inserted verbatim and numbers are never quoted.
    """
    if isinstance(value, str):
        if variable.multi or variable.include_all:
            return quote_swql_string(value)
        return value
    return value


def _render_variable(variable: TemplateVariable, interpolate: InterpolationCallback) -> str:
    if isinstance(variable.value, (list, tuple)):
        return ','.join(str(interpolate(item, variable)) for item in variable.value)
    return str(interpolate(variable.value, variable))


def substitute_template_variables(text: str, scoped_vars: Optional[Mapping[str, TemplateVariable]],
                                  interpolate: InterpolationCallback = interpolate_variable) -> str:
    """
    Replace `$name` and `${name}` tokens for every variable in scope.

    Tokens naming variables that are not in scope are left as they are, which
    keeps `$from` / `$to` intact for `resolve_macros`.
    """
    if not scoped_vars:
        return text

    # Longest names first so `$host` does not eat the prefix of `$hostname`
    names = sorted(scoped_vars.keys(), key=len, reverse=True)
    pattern = re.compile(
        r'\$\{(' + '|'.join(re.escape(n) for n in names) + r')\}'
        r'|\$(' + '|'.join(re.escape(n) for n in names) + r')(?![A-Za-z0-9_])'
    )

    rendered: Dict[str, str] = {}

    def _replace(match):
        name = match.group(1) or match.group(2)
        if name not in rendered:
            rendered[name] = _render_variable(scoped_vars[name], interpolate)
        return rendered[name]

    return pattern.sub(_replace, text)
