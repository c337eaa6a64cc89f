"""
Telldus Live API endpoint definitions.

Documentation: https://pa-api.telldus.com/explore
"""

# Listing endpoints
CLIENTS_LIST = "/json/clients/list"
DEVICES_LIST = "/json/devices/list"
SENSORS_LIST = "/json/sensors/list"

# Single resource endpoints
DEVICE_INFO = "/json/device/info"
DEVICE_COMMAND = "/json/device/command"
SENSOR_INFO = "/json/sensor/info"

# Device methods (bit flags, see Telldus Core documentation)
TELLSTICK_TURNON = 1
TELLSTICK_TURNOFF = 2
TELLSTICK_BELL = 4
TELLSTICK_TOGGLE = 8
TELLSTICK_DIM = 16
TELLSTICK_LEARN = 32
TELLSTICK_EXECUTE = 64
TELLSTICK_UP = 128
TELLSTICK_DOWN = 256
TELLSTICK_STOP = 512

SUPPORTED_METHODS = (
    TELLSTICK_TURNON
    | TELLSTICK_TURNOFF
    | TELLSTICK_BELL
    | TELLSTICK_DIM
    | TELLSTICK_UP
    | TELLSTICK_DOWN
    | TELLSTICK_STOP
)

METHOD_NAMES = {
    TELLSTICK_TURNON: "on",
    TELLSTICK_TURNOFF: "off",
    TELLSTICK_BELL: "bell",
    TELLSTICK_DIM: "dim",
    TELLSTICK_UP: "up",
    TELLSTICK_DOWN: "down",
    TELLSTICK_STOP: "stop",
}
