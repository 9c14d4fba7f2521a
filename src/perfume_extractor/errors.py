# -*- coding: utf-8 -*-
"""Exceptions raised by the extraction engine.

Row-level problems are never raised out of a conversion run; they are
collected as RowIssue entries on the ConversionResult instead.
"""


class ConfigurationError(ValueError):
    """Rule file, schema or regex problem. Fatal for the current run."""


class LearningError(ValueError):
    """A teaching statement could not be turned into a rule or mapping.

    Reported to the operator; the conversion keeps going.
    """

    def __init__(self, message: str, statement: str = ""):
        super().__init__(message)
        self.statement = statement
