"""Exception hierarchy for the notification engine.

Expected control-flow outcomes (a rule held back by its cooldown, a
delivery callback arriving out of order) are not exceptions; they are
reported through `SelectionSkip` and `TransitionOutcome` values.
"""


class NudgeError(Exception):
    """Base exception for engine errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(NudgeError):
    """A rule or template is malformed.

    Raised while building a catalog snapshot; the offending entry is
    excluded and logged, the rest of the catalog still loads.
    """

    def __init__(self, message: str, entry_id: str | None = None) -> None:
        super().__init__(message)
        self.entry_id = entry_id


class TemplateNotFoundError(ConfigurationError):
    """A rule references a template the catalog does not hold."""

    pass


class MissingVariableError(NudgeError):
    """A placeholder could not be resolved from the event context."""

    def __init__(self, placeholder: str, template_id: str | None = None) -> None:
        where = f" in template '{template_id}'" if template_id else ""
        super().__init__(f"Unresolved placeholder '{placeholder}'{where}")
        self.placeholder = placeholder
        self.template_id = template_id


class TransportFailure(NudgeError):
    """A channel adapter could not hand the message to its transport."""

    def __init__(self, message: str, channel: str | None = None) -> None:
        super().__init__(message)
        self.channel = channel


class CatalogUnavailableError(NudgeError):
    """No rule catalog snapshot has ever been loaded."""

    pass


class CooldownStoreUnavailableError(NudgeError):
    """The cooldown backing store could not be reached."""

    pass
