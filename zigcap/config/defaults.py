from __future__ import annotations

from zigcap.const import CAPABILITIES_DEBOUNCE, DEFAULT_ENDPOINT_ID

CONF_CAPABILITIES_DEBOUNCE_DEFAULT = CAPABILITIES_DEBOUNCE
CONF_DATABASE_DEFAULT = None
CONF_DEBUG_DEFAULT = False
CONF_DEFAULT_ENDPOINT_DEFAULT = DEFAULT_ENDPOINT_ID
CONF_RETRY_TIMES_DEFAULT = 1
CONF_RETRY_INTERVAL_DEFAULT = 0

CONF_ENDPOINT_ID_DEFAULT = DEFAULT_ENDPOINT_ID
