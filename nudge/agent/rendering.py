"""Template compilation and rendering.

Templates use `{{path.to.field}}` placeholders and nothing else: no
filters, blocks or expressions. Each template is parsed once with Jinja2
when the catalog loads; the placeholder paths are extracted in order and
checked against the template's declared `variables`. Rendering resolves
every declared variable from the event context first and fails with
MissingVariableError naming the first one that does not resolve.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError, nodes
from jinja2 import Template as JinjaTemplate

from nudge.agent.context import MISSING, is_valid_path, resolve_path
from nudge.agent.errors import ConfigurationError, MissingVariableError, TemplateNotFoundError
from nudge.agent.models import RenderedContent, Template
from nudge.observability.logging import get_logger
from nudge.observability.metrics import RENDER_FAILURES

logger = get_logger(__name__)


class _ContextEnvironment(Environment):
    """Jinja environment where `a.b` on a mapping is always an item lookup.

    Plain Jinja would resolve `user.items` to the dict method.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            if attribute in obj:
                return obj[attribute]
            return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)


_env = _ContextEnvironment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)


@dataclass(frozen=True)
class _LocalizedSource:
    title: JinjaTemplate
    body: JinjaTemplate


@dataclass(frozen=True)
class CompiledTemplate:
    """A validated template with its parsed locale variants."""

    template: Template
    placeholders: tuple[str, ...]
    locales: Mapping[str, _LocalizedSource]
    action_url: JinjaTemplate | None

    @property
    def id(self) -> str:
        return self.template.id


def _dotted(expr: nodes.Node) -> str | None:
    if isinstance(expr, nodes.Name):
        return expr.name
    if isinstance(expr, nodes.Getattr):
        parent = _dotted(expr.node)
        return f"{parent}.{expr.attr}" if parent else None
    return None


def extract_placeholders(source: str, template_id: str | None = None) -> list[str]:
    """Return the placeholder paths used in `source`, in order of appearance.

    Raises:
        ConfigurationError: On a syntax error or any construct other than
            a plain dotted placeholder
    """
    try:
        ast = _env.parse(source)
    except TemplateSyntaxError as e:
        raise ConfigurationError(
            f"Invalid template syntax: {e.message} (line {e.lineno})", template_id
        ) from e

    paths: list[str] = []
    for node in ast.body:
        if not isinstance(node, nodes.Output):
            raise ConfigurationError(
                f"Unsupported template construct: {type(node).__name__}", template_id
            )
        for child in node.nodes:
            if isinstance(child, nodes.TemplateData):
                continue
            path = _dotted(child)
            if path is None:
                raise ConfigurationError(
                    f"Unsupported placeholder expression: {type(child).__name__}",
                    template_id,
                )
            paths.append(path)
    return paths


def compile_template(template: Template, default_locale: str) -> CompiledTemplate:
    """Parse every locale variant and validate placeholders against `variables`.

    Raises:
        ConfigurationError: When the template cannot be used
    """
    if not template.content:
        raise ConfigurationError("Template has no localized content", template.id)
    if default_locale not in template.content:
        raise ConfigurationError(
            f"Template has no content for default locale '{default_locale}'",
            template.id,
        )

    for variable in template.variables:
        if not is_valid_path(variable):
            raise ConfigurationError(f"Invalid declared variable: {variable!r}", template.id)
    declared = set(template.variables)

    sources = [text for c in template.content.values() for text in (c.title, c.body)]
    if template.action_url:
        sources.append(template.action_url)

    ordered: list[str] = []
    for source in sources:
        for path in extract_placeholders(source, template.id):
            if path not in declared:
                raise ConfigurationError(
                    f"Placeholder '{path}' is not a declared variable", template.id
                )
            if path not in ordered:
                ordered.append(path)

    locales = {
        locale: _LocalizedSource(
            title=_env.from_string(content.title),
            body=_env.from_string(content.body),
        )
        for locale, content in template.content.items()
    }
    action_url = _env.from_string(template.action_url) if template.action_url else None

    # Declared-but-unused variables are still required at render time
    for variable in template.variables:
        if variable not in ordered:
            ordered.append(variable)

    return CompiledTemplate(
        template=template,
        placeholders=tuple(ordered),
        locales=MappingProxyType(locales),
        action_url=action_url,
    )


class TemplateRenderer:
    """Renders compiled templates against event context.

    Rendering never mutates the template; the result is a fresh
    RenderedContent snapshot.
    """

    def __init__(self, catalog: Any, default_locale: str = "en") -> None:
        """Initialize renderer.

        Args:
            catalog: RuleCatalog whose `snapshot()` holds compiled templates
            default_locale: Locale used when the requested one is absent
        """
        self._catalog = catalog
        self._default_locale = default_locale

    def render(
        self,
        template_id: str,
        locale: str | None,
        context: Mapping[str, Any],
    ) -> RenderedContent:
        """Render a template by id from the current catalog snapshot.

        Raises:
            TemplateNotFoundError: If the catalog has no such template
            MissingVariableError: If a declared variable is not in context
        """
        compiled = self._catalog.snapshot().templates.get(template_id)
        if compiled is None:
            raise TemplateNotFoundError(f"Template not found: {template_id}", template_id)
        return self.render_compiled(compiled, locale, context)

    def render_compiled(
        self,
        compiled: CompiledTemplate,
        locale: str | None,
        context: Mapping[str, Any],
    ) -> RenderedContent:
        """Render an already compiled template."""
        resolved_locale = self.resolve_locale(compiled, locale)

        for path in compiled.placeholders:
            value = resolve_path(context, path)
            if value is MISSING or value is None:
                RENDER_FAILURES.labels(template_id=compiled.id, reason="missing_variable").inc()
                raise MissingVariableError(path, compiled.id)

        source = compiled.locales[resolved_locale]
        try:
            title = source.title.render(context)
            body = source.body.render(context)
            action_url = compiled.action_url.render(context) if compiled.action_url else None
        except UndefinedError as e:
            RENDER_FAILURES.labels(template_id=compiled.id, reason="undefined").inc()
            raise MissingVariableError(str(e), compiled.id) from e

        return RenderedContent(
            title=title,
            body=body,
            action_url=action_url,
            locale=resolved_locale,
        )

    def resolve_locale(self, compiled: CompiledTemplate, locale: str | None) -> str:
        """Pick the best available locale: exact, then language, then default."""
        if locale:
            wanted = locale.lower().replace("_", "-")
            if wanted in compiled.locales:
                return wanted
            language = wanted.split("-", 1)[0]
            if language in compiled.locales:
                return language
            logger.debug(
                "locale_fallback",
                template_id=compiled.id,
                requested=locale,
                fallback=self._default_locale,
            )
        return self._default_locale
