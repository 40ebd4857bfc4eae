""" Joi describe() tree to JSON Schema converter. """

# pylint: disable=line-too-long, too-many-branches

import copy
import json
import logging
import os
import re
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from joitize.constants import (ANY_JSON_TYPES, DEFAULT_IP_FORMAT,
                               PRESENCE_FORBIDDEN, SUPPORTED_JOI_VERSION,
                               VERSION_ATTRIBUTE_PATH)
from joitize.describe import (DescribeFieldNames, JoiDescribeAccessor,
                              JoiToJsonSchemaError)

logger = logging.getLogger(__name__)

JoiRuntime = NamedTuple('JoiRuntime', [('version', Optional[str])])


def get_supported_version() -> str:
    """The Joi major version whose describe() output is understood."""
    return SUPPORTED_JOI_VERSION


def get_version(source: Any) -> Optional[str]:
    """
    Read the Joi release tag carried by a schema object.

    Comparing it with get_supported_version() is up to the caller; conversion
    itself never checks it.
    """
    value = source
    for attribute in VERSION_ATTRIBUTE_PATH:
        value = getattr(value, attribute, None)
        if value is None:
            return None
    return value


def is_supported_version(version: Optional[str]) -> bool:
    """True if the major component of a Joi release tag matches the supported version."""
    if not version:
        return False
    return str(version).lstrip('v').split('.')[0] == SUPPORTED_JOI_VERSION


def regex_source(pattern: Any) -> Optional[str]:
    """
    Source text of a regular expression found in a describe() tree.

    Accepts compiled patterns, JSON dumps of a RegExp ({"source": ...}) and
    plain strings.
    """
    if isinstance(pattern, re.Pattern):
        return pattern.pattern
    if isinstance(pattern, dict):
        return pattern.get('source')
    if isinstance(pattern, str):
        return pattern
    return None


class JoiToJsonSchemaConverter:
    """
    Converts one node of a Joi describe() tree, and recursively its children,
    into a JSON Schema fragment.

    The converter holds no state between calls; the same instance can convert
    any number of trees.
    """

    def __init__(self, field_names: Optional[DescribeFieldNames] = None) -> None:
        self.accessor = JoiDescribeAccessor(field_names)
        self.refiners: Dict[str, Callable[[Dict[str, Any], Dict[str, Any]], None]] = {
            'number': self.refine_number,
            'integer': self.refine_number,
            'binary': self.refine_binary,
            'string': self.refine_string,
            'date': self.refine_date,
            'array': self.refine_array,
            'object': self.refine_object,
            'alternatives': self.refine_alternatives,
            'any': self.refine_any,
        }

    def convert(self, node: Dict[str, Any]) -> Dict[str, Any]:
        """
        Convert a describe() node into a JSON Schema fragment.

        A forbidden node short-circuits to ``{"not": {}}``. Otherwise the base
        shell is built, the refiner for the shell's type runs, and the
        nullable widening is applied last since it reads the final type.
        """
        if self.accessor.presence(node) == PRESENCE_FORBIDDEN:
            return {'not': {}}

        schema = self.build_shell(node)
        field_type = schema.get('type')
        refiner = self.refiners.get(field_type) if isinstance(field_type, str) else None
        if refiner is not None:
            refiner(schema, node)
        elif field_type is not None:
            logger.debug("No refinement for Joi type %r, passing it through", field_type)
        self.add_null_type_if_nullable(schema, node)
        return schema

    def get_field_type(self, node: Dict[str, Any]) -> Optional[str]:
        """
        The Joi type of a node, with number nodes reported as 'integer' when
        their first rule is the integer rule. Later rules are not inspected.
        """
        field_type = node.get('type')
        rules = self.accessor.rules(node)
        if field_type == 'number' and rules and rules[0].get('name') == 'integer':
            field_type = 'integer'
        return field_type

    @staticmethod
    def set_if_present(schema: Dict[str, Any], field: str, value: Any) -> None:
        if value is not None:
            schema[field] = value

    def build_shell(self, node: Dict[str, Any]) -> Dict[str, Any]:
        schema: Dict[str, Any] = {}
        self.set_if_present(schema, 'type', self.get_field_type(node))
        self.set_if_present(schema, 'examples', self.accessor.examples(node))
        self.set_if_present(schema, 'description', self.accessor.description(node))
        self.set_if_present(schema, 'default', self.accessor.default_value(node))
        self.set_if_present(schema, 'enum', self.accessor.filtered_enum(node))
        return schema

    def refine_number(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        # a repeated rule overwrites whatever an earlier one set
        for rule in self.accessor.rules(node):
            name = rule.get('name')
            value = self.accessor.rule_arg(rule)
            if name == 'max':
                schema['maximum'] = value
            elif name == 'min':
                schema['minimum'] = value
            elif name == 'greater':
                schema['exclusiveMinimum'] = True
                schema['minimum'] = value
            elif name == 'less':
                schema['exclusiveMaximum'] = True
                schema['maximum'] = value
            elif name == 'multiple':
                schema['multipleOf'] = value
            elif name != 'integer':
                logger.debug("Ignoring number rule %r", name)

    def refine_binary(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        schema['type'] = 'string'
        encoding = self.accessor.flag(node, 'encoding')
        if encoding:
            schema['contentEncoding'] = encoding
        schema['format'] = 'binary'
        # now a string, so the string constraints apply as well
        self.refine_string(schema, node)

    def refine_string(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        encoding = self.accessor.flag(node, 'encoding')
        if encoding:
            schema['contentEncoding'] = encoding
        for meta in self.accessor.meta(node):
            if isinstance(meta, dict) and meta.get('contentMediaType'):
                schema['contentMediaType'] = meta['contentMediaType']

        for rule in self.accessor.rules(node):
            name = rule.get('name')
            value = self.accessor.rule_arg(rule)
            if name == 'min':
                schema['minLength'] = value
            elif name == 'max':
                schema['maxLength'] = value
            elif name in ('email', 'hostname', 'uri'):
                schema['format'] = name
            elif name == 'ip':
                self.set_ip_format(schema, value)
            elif name == 'regex':
                pattern = regex_source(value.get('pattern') if isinstance(value, dict) else value)
                if pattern is not None:
                    schema['pattern'] = pattern
            elif name == 'isoDate':
                schema['format'] = 'date-time'
            elif name in ('uuid', 'guid'):
                schema['format'] = 'uuid'
            else:
                logger.debug("Ignoring string rule %r", name)

    @staticmethod
    def set_ip_format(schema: Dict[str, Any], ip_arg: Any) -> None:
        versions = ip_arg.get('version') if isinstance(ip_arg, dict) else None
        if isinstance(versions, str):
            versions = [versions]
        if not versions:
            schema['format'] = DEFAULT_IP_FORMAT
        elif len(versions) == 1:
            schema['format'] = versions[0]
        else:
            schema['oneOf'] = [{'format': version} for version in versions]

    def refine_date(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        if self.accessor.flag(node, 'timestamp'):
            schema['type'] = 'integer'
        else:
            # JSON Schema has no date type; whether Joi meant a date, a time
            # or both is not recoverable from the description
            schema['type'] = 'string'
            schema['format'] = 'date-time'

    def refine_array(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        for rule in self.accessor.rules(node):
            name = rule.get('name')
            value = self.accessor.rule_arg(rule)
            if name == 'max':
                schema['maxItems'] = value
            elif name == 'min':
                schema['minItems'] = value
            elif name == 'length':
                schema['maxItems'] = value
                schema['minItems'] = value
            elif name == 'unique':
                schema['uniqueItems'] = True
            else:
                logger.debug("Ignoring array rule %r", name)

        items = self.accessor.items(node)
        if not items:
            schema['items'] = {}
        elif len(items) == 1:
            schema['items'] = self.convert(items[0])
        else:
            schema['items'] = {'anyOf': [self.convert(item) for item in items]}

    def refine_object(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        schema['properties'] = properties

        allow_unknown_flag = self.accessor.field_names.allow_unknown
        schema['additionalProperties'] = self.accessor.option(node, 'allowUnknown', False)
        if self.accessor.has_flag(node, allow_unknown_flag):
            schema['additionalProperties'] = self.accessor.flag(node, allow_unknown_flag)

        for key, child in self.accessor.children(node).items():
            properties[key] = self.convert(child)
            if self.accessor.is_required(child):
                required.append(key)

        # dynamic keys: the pattern text becomes the property name
        for pattern in self.accessor.patterns(node):
            rule = pattern.get('rule')
            if not isinstance(rule, dict):
                continue
            key = regex_source(pattern.get('regex'))
            if key is None:
                continue
            properties[key] = self.convert_pattern_rule(rule)

        if required:
            schema['required'] = required

    def convert_pattern_rule(self, rule: Dict[str, Any]) -> Dict[str, Any]:
        pattern_schema: Dict[str, Any] = {}
        self.set_if_present(pattern_schema, 'type', rule.get('type'))
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for key, child in self.accessor.pattern_children(rule).items():
            properties[key] = self.convert(child)
            if self.accessor.is_required(child):
                required.append(key)
        pattern_schema['properties'] = properties
        if required:
            pattern_schema['required'] = required
        return pattern_schema

    def refine_alternatives(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        alternatives = self.accessor.alternatives(node)
        first = alternatives[0] if alternatives else None
        if len(alternatives) == 1 and isinstance(first, dict) and (first.get('is') or first.get('then') or first.get('otherwise')):
            # the 'is' condition has no JSON Schema counterpart and is dropped
            one_of = []
            if first.get('then'):
                one_of.append(self.convert(first['then']))
            if first.get('otherwise'):
                one_of.append(self.convert(first['otherwise']))
            schema['oneOf'] = one_of
        else:
            schema['oneOf'] = [self.convert(alternative) for alternative in alternatives]
        del schema['type']

    def refine_any(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        schema['type'] = list(ANY_JSON_TYPES)

    def add_null_type_if_nullable(self, schema: Dict[str, Any], node: Dict[str, Any]) -> None:
        """Widen the final type to also accept null when null is an allowed value."""
        valids = self.accessor.valids(node)
        if valids is None or None not in valids:
            return
        if 'type' not in schema:
            if 'oneOf' in schema:
                schema['oneOf'].append({'type': 'null'})
            return
        current_type = schema['type']
        if isinstance(current_type, list):
            if 'null' not in current_type:
                current_type.append('null')
        else:
            schema['type'] = [current_type, 'null']


class JoiJsonSchemaTranslator:
    """
    Translates a Joi schema object into a JSON Schema document.

    The source must expose a callable ``describe()``; it is called once and
    the whole tree is converted during construction.
    """

    def __init__(self, source: Any, field_names: Optional[DescribeFieldNames] = None) -> None:
        describe = getattr(source, 'describe', None)
        if not callable(describe):
            raise JoiToJsonSchemaError('Not a Joi object to be described', context=type(source).__name__)
        self._source = source
        self._description = describe()
        self._converter = JoiToJsonSchemaConverter(field_names)
        self._json_schema = self._converter.convert(self._description)

    @property
    def description(self) -> Dict[str, Any]:
        """The describe() tree the schema was built from."""
        return self._description

    @property
    def json_schema(self) -> Dict[str, Any]:
        return self._json_schema

    @staticmethod
    def get_version(source: Any) -> Optional[str]:
        return get_version(source)

    @staticmethod
    def get_supported_version() -> str:
        return get_supported_version()


class DescribedSchema:
    """
    A Joi schema whose describe() output was captured elsewhere, typically
    dumped to JSON by a Node.js process.
    """

    def __init__(self, description: Dict[str, Any], joi_version: Optional[str] = None) -> None:
        self._described = description
        self._currentJoi = JoiRuntime(joi_version)  # pylint: disable=invalid-name

    def describe(self) -> Dict[str, Any]:
        return copy.deepcopy(self._described)


def convert_joi_to_json_schema_string(describe_content: str, joi_version: Optional[str] = None) -> str:
    """
    Convert a JSON dump of a Joi describe() tree to JSON Schema.

    Args:
        describe_content (str): The describe() output as a JSON string
        joi_version (Optional[str]): The Joi release that produced the dump, if known

    Returns:
        str: The JSON Schema document as a string
    """
    try:
        description = json.loads(describe_content)
    except json.JSONDecodeError as e:
        raise JoiToJsonSchemaError(f"Invalid Joi describe() document: {e}") from e

    if joi_version and not is_supported_version(joi_version):
        logger.warning("Joi version %s does not match supported version %s; output may be incomplete",
                       joi_version, get_supported_version())

    translator = JoiJsonSchemaTranslator(DescribedSchema(description, joi_version))
    return json.dumps(translator.json_schema, indent=2)


def convert_joi_to_json_schema(joi_describe_file: str, json_schema_file: str, joi_version: Optional[str] = None) -> None:
    """
    Convert a Joi describe() JSON dump file to a JSON Schema file.

    :param joi_describe_file: The path to the input describe() dump.
    :param json_schema_file: The path to the output JSON Schema file.
    :param joi_version: The Joi release that produced the dump, if known.
    """
    if not joi_describe_file:
        raise ValueError('Joi describe file path is required')
    if not os.path.exists(joi_describe_file):
        raise FileNotFoundError(f'Joi describe file {joi_describe_file} not found')

    with open(joi_describe_file, 'r', encoding='utf-8') as f:
        describe_content = f.read()

    result = convert_joi_to_json_schema_string(describe_content, joi_version)

    with open(json_schema_file, 'w', encoding='utf-8') as f:
        f.write(result)
