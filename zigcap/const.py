"""Constants shared by the capability binding engine."""

from __future__ import annotations

CAPABILITIES_DEBOUNCE = 500  # ms
DEFAULT_ENDPOINT_ID = 1

# Durable store keys
STORE_FIRST_INIT = "zb_first_init"
STORE_CONFIGURED_ATTRIBUTE_REPORTING = "configured_attribute_reporting"
STORE_COLOR_TEMP_MIN = "color_temp_min"
STORE_COLOR_TEMP_MAX = "color_temp_max"

# Host setting keys
SETTING_ZIGBEE_GROUPS = "zigbee_groups"
SETTING_TOUCHLINK_GROUPS = "zb_touchlink_groups"
SETTING_TRANSITION_TIME = "transition_time"
SETTING_BATTERY_THRESHOLD = "battery_threshold"

MAX_GROUP_ID = 0xFFFF
MAX_DIM = 254
MAX_HUE = 254
MAX_SATURATION = 254
CIE_MULTIPLIER = 65279

# Reporting intervals are in seconds
MIN_REPORTING_MIN_INTERVAL = 1
MIN_REPORTING_MAX_INTERVAL = 60
REPORTING_DEFAULT_MIN_INTERVAL = 0xFFFF

ATTR_LAST_UPDATED = "last_updated"
