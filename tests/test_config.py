"""Test configuration."""

import pytest
import voluptuous as vol

import zigcap.config
import zigcap.config.validators
from zigcap.clusters import CLUSTER
from zigcap.exceptions import InvalidClusterSpecification


@pytest.mark.parametrize(
    ("value", "result"), [(True, True), ("on", True), (0, False), ("disable", False)]
)
def test_config_debug_flag(value, result):
    config = zigcap.config.CONFIG_SCHEMA({zigcap.config.CONF_DEBUG: value})
    assert config[zigcap.config.CONF_DEBUG] is result


def test_config_debug_flag_invalid():
    with pytest.raises(vol.Invalid):
        zigcap.config.CONFIG_SCHEMA({zigcap.config.CONF_DEBUG: "sometimes"})

    with pytest.raises(vol.Invalid):
        zigcap.config.SCHEMA_CLUSTER_CAPABILITY(
            {"get_opts": {"get_on_start": "not a bool"}}
        )


@pytest.mark.parametrize("value", [True, "1", None])
def test_config_validation_number_invalid(value):
    with pytest.raises(vol.Invalid):
        zigcap.config.validators.cv_number(value)


def test_config_validation_integer():
    assert zigcap.config.validators.cv_integer(5) == 5

    with pytest.raises(vol.Invalid):
        zigcap.config.validators.cv_integer(5.0)

    with pytest.raises(vol.Invalid):
        zigcap.config.validators.cv_integer(False)


def test_config_validation_command():
    def command(device, value, opts):
        return "on"

    assert zigcap.config.validators.cv_command("off") == "off"
    assert zigcap.config.validators.cv_command(command) is command

    for value in ("", 3, None):
        with pytest.raises(vol.Invalid):
            zigcap.config.validators.cv_command(value)


def test_config_validation_poll_interval():
    cv_poll_interval = zigcap.config.validators.cv_poll_interval

    assert cv_poll_interval(1000) == 1000
    assert cv_poll_interval("poll_interval_setting") == "poll_interval_setting"

    with pytest.raises(vol.Invalid):
        cv_poll_interval("")

    with pytest.raises(vol.Invalid):
        cv_poll_interval([1000])


def test_config_validation_cluster():
    assert zigcap.config.validators.cv_cluster("on_off") == CLUSTER.ON_OFF

    with pytest.raises(InvalidClusterSpecification):
        zigcap.config.validators.cv_cluster("on/off")


def test_config_defaults():
    config = zigcap.config.CONFIG_SCHEMA({})

    assert config[zigcap.config.CONF_CAPABILITIES_DEBOUNCE] == 500
    assert config[zigcap.config.CONF_DATABASE] is None
    assert config[zigcap.config.CONF_DEBUG] is False
    assert config[zigcap.config.CONF_DEFAULT_ENDPOINT] == 1
    assert config[zigcap.config.CONF_RETRY] == {
        zigcap.config.CONF_RETRY_TIMES: 1,
        zigcap.config.CONF_RETRY_INTERVAL: 0,
    }


def test_config_extra_keys_allowed():
    config = zigcap.config.CONFIG_SCHEMA({"driver_specific": {"foo": 1}})
    assert config["driver_specific"] == {"foo": 1}


@pytest.mark.parametrize(
    "config",
    [
        {zigcap.config.CONF_CAPABILITIES_DEBOUNCE: -1},
        {zigcap.config.CONF_DEFAULT_ENDPOINT: 0},
        {zigcap.config.CONF_RETRY: {zigcap.config.CONF_RETRY_TIMES: -1}},
        {zigcap.config.CONF_RETRY: {"attempts": 3}},
    ],
)
def test_config_invalid(config):
    with pytest.raises(vol.Invalid):
        zigcap.config.CONFIG_SCHEMA(config)


def test_cluster_capability_schema_has_no_defaults():
    assert zigcap.config.SCHEMA_CLUSTER_CAPABILITY({}) == {}
    assert zigcap.config.SCHEMA_CLUSTER_CAPABILITY({"get": None}) == {"get": None}


def test_cluster_capability_schema():
    def parser(device, value):
        return value

    config = {
        "get": "on_off",
        "get_opts": {"get_on_start": "yes", "poll_interval": 1000},
        "set": "toggle",
        "report": "on_off",
        "report_parser": parser,
        "report_opts": {
            "configure_attribute_reporting": {
                "min_interval": 0,
                "max_interval": 300,
                "min_change": 1,
            }
        },
        "endpoint": 2,
    }

    validated = zigcap.config.SCHEMA_CLUSTER_CAPABILITY(config)
    assert validated["get_opts"] == {"get_on_start": True, "poll_interval": 1000}
    assert validated["report_parser"] is parser


@pytest.mark.parametrize(
    "config",
    [
        {"get": 5},
        {"set_parser": "not callable"},
        {"endpoint": "1"},
        {"get_opts": {"poll": 5}},
        {"unknown": True},
    ],
)
def test_cluster_capability_schema_invalid(config):
    with pytest.raises(vol.Invalid):
        zigcap.config.SCHEMA_CLUSTER_CAPABILITY(config)


def test_attribute_reporting_schema():
    validated = zigcap.config.SCHEMA_ATTRIBUTE_REPORTING(
        {
            "cluster": "temperature",
            "attribute_name": "measured_value",
            "min_interval": 10,
            "max_interval": 300,
            "min_change": 50,
        }
    )

    assert validated["cluster"] == CLUSTER.TEMPERATURE_MEASUREMENT
    assert validated["endpoint_id"] == 1


def test_attribute_reporting_schema_missing_key():
    with pytest.raises(vol.Invalid):
        zigcap.config.SCHEMA_ATTRIBUTE_REPORTING(
            {"cluster": "temperature", "attribute_name": "measured_value"}
        )
