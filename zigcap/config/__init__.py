"""Config schemas and validation."""

from __future__ import annotations

import voluptuous as vol

from zigcap.config.defaults import (
    CONF_CAPABILITIES_DEBOUNCE_DEFAULT,
    CONF_DATABASE_DEFAULT,
    CONF_DEBUG_DEFAULT,
    CONF_DEFAULT_ENDPOINT_DEFAULT,
    CONF_ENDPOINT_ID_DEFAULT,
    CONF_RETRY_INTERVAL_DEFAULT,
    CONF_RETRY_TIMES_DEFAULT,
)
from zigcap.config.validators import (
    cv_boolean,
    cv_callable,
    cv_cluster,
    cv_command,
    cv_integer,
    cv_number,
    cv_poll_interval,
)

# Device options
CONF_CAPABILITIES_DEBOUNCE = "capabilities_debounce"
CONF_DATABASE = "database_path"
CONF_DEBUG = "debug"
CONF_DEFAULT_ENDPOINT = "default_endpoint"
CONF_RETRY = "retry"
CONF_RETRY_TIMES = "times"
CONF_RETRY_INTERVAL = "interval"

# Cluster capability configuration
CONF_GET = "get"
CONF_GET_OPTS = "get_opts"
CONF_GET_ON_START = "get_on_start"
CONF_GET_ON_ONLINE = "get_on_online"
CONF_POLL_INTERVAL = "poll_interval"
CONF_SET = "set"
CONF_SET_PARSER = "set_parser"
CONF_REPORT = "report"
CONF_REPORT_PARSER = "report_parser"
CONF_REPORT_OPTS = "report_opts"
CONF_CONFIGURE_ATTRIBUTE_REPORTING = "configure_attribute_reporting"
CONF_ENDPOINT = "endpoint"

# Attribute reporting
CONF_CLUSTER = "cluster"
CONF_ATTRIBUTE_NAME = "attribute_name"
CONF_MIN_INTERVAL = "min_interval"
CONF_MAX_INTERVAL = "max_interval"
CONF_MIN_CHANGE = "min_change"
CONF_ENDPOINT_ID = "endpoint_id"

SCHEMA_RETRY = vol.Schema(
    {
        vol.Optional(CONF_RETRY_TIMES, default=CONF_RETRY_TIMES_DEFAULT): vol.All(
            cv_integer, vol.Range(min=0)
        ),
        vol.Optional(
            CONF_RETRY_INTERVAL, default=CONF_RETRY_INTERVAL_DEFAULT
        ): vol.All(vol.Coerce(float), vol.Range(min=0)),
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(
            CONF_CAPABILITIES_DEBOUNCE, default=CONF_CAPABILITIES_DEBOUNCE_DEFAULT
        ): vol.All(cv_number, vol.Range(min=0)),
        vol.Optional(CONF_DATABASE, default=CONF_DATABASE_DEFAULT): vol.Any(None, str),
        vol.Optional(CONF_DEBUG, default=CONF_DEBUG_DEFAULT): cv_boolean,
        vol.Optional(
            CONF_DEFAULT_ENDPOINT, default=CONF_DEFAULT_ENDPOINT_DEFAULT
        ): vol.All(cv_integer, vol.Range(min=1, max=240)),
        vol.Optional(CONF_RETRY, default={}): SCHEMA_RETRY,
    },
    extra=vol.ALLOW_EXTRA,
)

SCHEMA_GET_OPTS = vol.Schema(
    {
        vol.Optional(CONF_GET_ON_START): cv_boolean,
        vol.Optional(CONF_GET_ON_ONLINE): cv_boolean,
        vol.Optional(CONF_POLL_INTERVAL): vol.Any(None, cv_poll_interval),
    }
)

# All three must be present for reporting to be configured automatically
SCHEMA_CONFIGURE_REPORTING = vol.Schema(
    {
        vol.Optional(CONF_MIN_INTERVAL): cv_integer,
        vol.Optional(CONF_MAX_INTERVAL): cv_integer,
        vol.Optional(CONF_MIN_CHANGE): cv_number,
    }
)

SCHEMA_REPORT_OPTS = vol.Schema(
    {
        vol.Optional(CONF_CONFIGURE_ATTRIBUTE_REPORTING): vol.Any(
            None, SCHEMA_CONFIGURE_REPORTING
        ),
    }
)

# No defaults here: absent keys must not shadow the system configuration on merge
SCHEMA_CLUSTER_CAPABILITY = vol.Schema(
    {
        vol.Optional(CONF_GET): vol.Any(None, str),
        vol.Optional(CONF_GET_OPTS): vol.Any(None, SCHEMA_GET_OPTS),
        vol.Optional(CONF_SET): vol.Any(None, cv_command),
        vol.Optional(CONF_SET_PARSER): vol.Any(None, cv_callable),
        vol.Optional(CONF_REPORT): vol.Any(None, str),
        vol.Optional(CONF_REPORT_PARSER): vol.Any(None, cv_callable),
        vol.Optional(CONF_REPORT_OPTS): vol.Any(None, SCHEMA_REPORT_OPTS),
        vol.Optional(CONF_ENDPOINT): vol.Any(None, vol.All(cv_integer, vol.Range(min=0))),
    }
)

SCHEMA_ATTRIBUTE_REPORTING = vol.Schema(
    {
        vol.Required(CONF_CLUSTER): cv_cluster,
        vol.Required(CONF_ATTRIBUTE_NAME): str,
        vol.Required(CONF_MIN_INTERVAL): cv_integer,
        vol.Required(CONF_MAX_INTERVAL): cv_integer,
        vol.Required(CONF_MIN_CHANGE): cv_number,
        vol.Optional(CONF_ENDPOINT_ID, default=CONF_ENDPOINT_ID_DEFAULT): vol.All(
            cv_integer, vol.Range(min=0)
        ),
    }
)
