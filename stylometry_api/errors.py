"""Exception hierarchy for stylometry experiments."""


class StylometryError(Exception):
    """Base class for all errors raised by stylometry_api."""


class ConfigurationError(StylometryError):
    """Raised by Builder.build() when the experiment cannot be configured."""


class StageFailure(StylometryError):
    """A feature preparation stage could not complete."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage


class ResolutionFailure(StylometryError):
    """A classifier identifier could not be turned into an analyzer."""

    def __init__(self, name: str, message: str):
        super().__init__(f"Cannot resolve classifier '{name}': {message}")
        self.name = name


class EvaluationFailure(StylometryError):
    """The evaluation protocol for an analysis mode failed."""

    def __init__(self, mode, message: str):
        super().__init__(f"{mode}: {message}")
        self.mode = mode


class ReportingError(StylometryError):
    """A report was requested for a result that has not been produced."""


class NotPreparedError(StylometryError):
    """run() was called before features or the analyzer were ready."""
