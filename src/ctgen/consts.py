"""Constants shared across ctgen."""

CTGEN_VERSION = '0.1.5'

CONFIG_DIR_NAME = '.ctgen'
CONFIG_FILE_NAME = 'profiles.yml'
CONFIG_FILE_ENV_VAR = 'CTGEN_CONFIG'
CONFIG_NAME_DEFAULT = 'default'
CONFIG_NAME_PATTERN = r'^[a-zA-Z-_]+$'

PROFILE_DEFAULT_FILENAME = 'Ctgen.yml'
PROFILE_FILE_EXTENSIONS = ('.yml', '.yaml')

TEMPLATE_FILE_EXT = '.jinja'
SCRIPT_FILE_EXT = '.py'
SCRIPT_HELPER_ATTR = 'helper'

# A rendered condition must equal this (after trimming) for a prompt or target to proceed
CONDITION_TRUE = '1'
ANSWER_LIST_SEPARATOR = ','
