"""Errors raised by scattering actions.

All of these signal a defect in channel construction or configuration;
none of them are expected during normal operation and none are caught
inside the package.
"""


class ScatterXError(Exception):
    """Base class for all ScatterX errors."""


class InvalidScatterAction(ScatterXError, RuntimeError):
    """The action was asked to do something its channels do not support."""


class InvalidResonanceFormation(InvalidScatterAction):
    """A 2->1 branch did not carry exactly one outgoing particle."""


class ChannelSelectionError(InvalidScatterAction):
    """No branch could be selected (empty list or non-positive total)."""


class StringExcitationError(ScatterXError, RuntimeError):
    """A string collaborator failed to initialize or exhausted its retries."""


class StringPartitionError(ScatterXError, ArithmeticError):
    """String sub-cross-sections do not add up to the string cross section."""
