"""Constants for the joitize package."""

# Major version of the Joi describe() output this translator understands
SUPPORTED_JOI_VERSION = '12'

# Attribute path on a live Joi schema object that holds the Joi release
VERSION_ATTRIBUTE_PATH = ('_currentJoi', 'version')

# Presence values found in flags.presence / options.presence
PRESENCE_REQUIRED = 'required'
PRESENCE_FORBIDDEN = 'forbidden'

# JSON Schema type list meaning "any JSON value"
ANY_JSON_TYPES = ['array', 'boolean', 'number', 'object', 'string', 'null']

# Format used for an ip rule that does not name any version
DEFAULT_IP_FORMAT = 'ipv4'
