"""Exceptions raised by the flow engine."""


class FlowError(Exception):
    """Base class for flow engine errors"""


class SlotNotFound(FlowError, LookupError):
    """A node has no input/output slot for the referenced product or index"""


class NodeNotFound(FlowError, LookupError):
    """A referenced node is not present in the graph store"""


class TemplateNotFound(FlowError, LookupError):
    """A building template is missing from the catalog or has no recipes"""


class InvalidConnection(FlowError, ValueError):
    """Two slots cannot be linked"""
