"""
Accessors for the tree returned by a Joi schema's describe() call.

The describe() output changes field names between Joi releases (``children``
vs. ``keys``, ``options`` vs. ``preferences`` ...). All lookups go through a
``DescribeFieldNames`` record chosen once per converter, so supporting another
release means adding a record to ``DESCRIBE_FIELD_NAMES`` rather than touching
the conversion code.
"""

# pylint: disable=line-too-long

import copy
from typing import Any, Dict, List, NamedTuple, Optional

from jsonpointer import JsonPointer

from joitize.constants import PRESENCE_REQUIRED, SUPPORTED_JOI_VERSION


class JoiToJsonSchemaError(Exception):
    """
    Exception raised when a Joi description cannot be converted.

    Attributes:
        message: Human-readable error description
        context: Optional context about where the error occurred
    """

    def __init__(self, message: str, context: Optional[str] = None) -> None:
        self.message = message
        self.context = context
        full_message = message
        if context:
            full_message = f"{message} (context: {context})"
        super().__init__(full_message)


DescribeFieldNames = NamedTuple('DescribeFieldNames', [
    ('version', str),
    ('children', str),
    ('alternate_children', str),
    ('options', str),
    ('rule_arg', str),
    ('enum', str),
    ('allow_unknown', str),
])

DESCRIBE_FIELD_NAMES: Dict[str, DescribeFieldNames] = {
    '12': DescribeFieldNames(
        version='12',
        children='children',
        alternate_children='keys',
        options='options',
        rule_arg='arg',
        enum='valids',
        allow_unknown='allowUnknown'),
}


def get_field_names(version: str = SUPPORTED_JOI_VERSION) -> DescribeFieldNames:
    """
    Look up the describe() field names for a Joi major version.

    Raises:
        JoiToJsonSchemaError: If no field names are registered for the version.
    """
    field_names = DESCRIBE_FIELD_NAMES.get(str(version))
    if field_names is None:
        raise JoiToJsonSchemaError(
            f"No describe() field names registered for Joi version {version}",
            context=f"supported: {', '.join(sorted(DESCRIBE_FIELD_NAMES))}")
    return field_names


def lookup(node: Any, *path: str, default: Any = None) -> Any:
    """Resolve a key path inside a describe() node, returning default when any step is missing."""
    return JsonPointer.from_parts(list(path)).resolve(node, default)


class JoiDescribeAccessor:
    """Reads normalized facts from raw describe() nodes."""

    def __init__(self, field_names: Optional[DescribeFieldNames] = None) -> None:
        self.field_names = field_names or get_field_names()

    def presence(self, node: Dict[str, Any]) -> Optional[str]:
        """
        Presence of a node: the node's own ``flags.presence`` if set, else
        the ``presence`` inherited through the node's options.
        """
        presence = lookup(node, 'flags', 'presence')
        if presence is not None:
            return presence
        return lookup(node, self.field_names.options, 'presence')

    def is_required(self, node: Dict[str, Any]) -> bool:
        return self.presence(node) == PRESENCE_REQUIRED

    def default_value(self, node: Dict[str, Any]) -> Any:
        return copy.deepcopy(lookup(node, 'flags', 'default'))

    def description(self, node: Dict[str, Any]) -> Optional[str]:
        return lookup(node, 'description')

    def examples(self, node: Dict[str, Any]) -> Any:
        return copy.deepcopy(lookup(node, 'examples'))

    def valids(self, node: Dict[str, Any]) -> Optional[List[Any]]:
        """The raw, unfiltered list of allowed values."""
        valids = lookup(node, self.field_names.enum)
        return valids if isinstance(valids, list) else None

    def filtered_enum(self, node: Dict[str, Any]) -> Optional[List[Any]]:
        """
        Allowed values with falsy entries (None, False, 0, empty strings or
        collections) removed.

        Returns None rather than an empty list when nothing is left, so the
        caller can omit ``enum`` altogether.
        """
        valids = self.valids(node)
        if not valids:
            return None
        enum_list = [copy.deepcopy(item) for item in valids if item]
        return enum_list or None

    def flag(self, node: Dict[str, Any], name: str, default: Any = None) -> Any:
        return lookup(node, 'flags', name, default=default)

    def has_flag(self, node: Dict[str, Any], name: str) -> bool:
        flags = node.get('flags')
        return isinstance(flags, dict) and name in flags

    def option(self, node: Dict[str, Any], name: str, default: Any = None) -> Any:
        return lookup(node, self.field_names.options, name, default=default)

    def rules(self, node: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._dict_entries(node, 'rules')

    def rule_arg(self, rule: Dict[str, Any]) -> Any:
        return rule.get(self.field_names.rule_arg)

    def children(self, node: Dict[str, Any]) -> Dict[str, Any]:
        """Declared object children, in declaration order."""
        children = node.get(self.field_names.children)
        return children if isinstance(children, dict) else {}

    def pattern_children(self, rule: Dict[str, Any]) -> Dict[str, Any]:
        """Children of a pattern rule, which may use either child map name."""
        children = rule.get(self.field_names.alternate_children) or rule.get(self.field_names.children)
        return children if isinstance(children, dict) else {}

    def items(self, node: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._dict_entries(node, 'items')

    def alternatives(self, node: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._dict_entries(node, 'alternatives')

    def patterns(self, node: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._dict_entries(node, 'patterns')

    def meta(self, node: Dict[str, Any]) -> List[Any]:
        meta = node.get('meta')
        return meta if isinstance(meta, list) else []

    @staticmethod
    def _dict_entries(node: Dict[str, Any], field: str) -> List[Dict[str, Any]]:
        entries = node.get(field)
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict)]
