"""Internal constants shared across the library."""

NUM_CHANNELS = 3
MIN_LEVEL = 0
MAX_LEVEL = 255

DEFAULT_DEVICE_ID = "esp32-01"
DEFAULT_BROKER_URL = "ws://broker.emqx.io:8083/mqtt"

# ------------------------------------------------------------------
# MQTT topic layout  (namespaced by device id)
# ------------------------------------------------------------------

TOPIC_PREFIX = "home/esp32"
COMMAND_TOPIC = "{prefix}/{device_id}/led/set"
STATE_TOPIC = "{prefix}/{device_id}/led/state"
SENSOR_TOPIC = "{prefix}/{device_id}/sensor/pir"

# ------------------------------------------------------------------
# REST endpoints
# ------------------------------------------------------------------

PRESETS_ENDPOINT = "/presets"
LOGS_ENDPOINT = "/logs"

UNAVAILABLE_PRESET_NAME = "Presets unavailable"
