import json
import re
from typing import Any, Mapping

from jinja2 import Environment, TemplateError

# {{ name }} is listed first so its outer braces are consumed with it
_TOKEN = re.compile(r'\{\{\s*([A-Za-z_][\w.\-]*)\s*\}\}|\{([A-Za-z_][\w.\-]*)\}')

env = Environment()


def regex_replace(s, pattern, repl, ignorecase=False, dotall=False):
    flags = 0
    if ignorecase:
        flags |= re.IGNORECASE
    if dotall:
        flags |= re.DOTALL
    return re.sub(pattern, repl, s, flags=flags)


def regex_findall(s, pattern, ignorecase=False, dotall=False):
    flags = 0
    if ignorecase:
        flags |= re.IGNORECASE
    if dotall:
        flags |= re.DOTALL
    return re.findall(pattern, s, flags=flags)


env.filters['regex_replace'] = regex_replace
env.filters['regex_findall'] = regex_findall


def interpolate(text: str, variables: Mapping[str, Any]) -> str:
    """
    Replace `{name}` and `{{ name }}` tokens with values from `variables`.

    Unknown tokens are left exactly as written. Substituted values are inserted
    verbatim in a single pass and never rescanned.
    """
    if not isinstance(text, str) or '{' not in text:
        return text

    def substitute(match: re.Match) -> str:
        key = match.group(1) if match.group(1) is not None else match.group(2)
        if key in variables:
            value = variables[key]
            return '' if value is None else str(value)
        return match.group(0)

    return _TOKEN.sub(substitute, text)


def interpolate_output(value: Any, variables: Mapping[str, Any]) -> Any:
    """Apply `interpolate` to every string inside nested dicts, lists and tuples."""
    if isinstance(value, str):
        return interpolate(value, variables)
    if isinstance(value, dict):
        return {k: interpolate_output(v, variables) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [interpolate_output(v, variables) for v in value]
    return value


def template_parse(template, params):
    t = env.from_string(template)  # Use custom env with filters
    o = t.render(params)
    return o


def render_body(body: Any, params: Mapping[str, Any]) -> Any:
    """
    Render a webhook body with Jinja2 against the conversation variables.

    Dict bodies are rendered through their JSON text so every string leaf can
    use template syntax; the result is parsed back to JSON when possible.
    """
    if body is None:
        return None
    source = body if isinstance(body, str) else json.dumps(body)
    try:
        rendered = template_parse(source, dict(params))
    except TemplateError:
        rendered = source
    try:
        return json.loads(rendered)
    except ValueError:
        return rendered
