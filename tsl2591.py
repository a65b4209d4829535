# SPDX-FileCopyrightText: 2017 Tony DiCola for Adafruit Industries
#
# SPDX-License-Identifier: MIT

"""
`tsl2591`
====================================================

Python driver for the TSL2591 high dynamic range light sensor.  See
examples/tsl2591_simpletest.py for a demo of the usage.

Implementation Notes
--------------------

**Hardware:**

* Adafruit `TSL2591 High Dynamic Range Digital Light Sensor
  <https://www.adafruit.com/product/1980>`_ (Product ID: 1980)

**Software and Dependencies:**

* Adafruit Blinka (``busio`` and ``micropython`` on Linux single board
  computers): https://github.com/adafruit/Adafruit_Blinka

 * Adafruit's Bus Device library: https://github.com/adafruit/Adafruit_CircuitPython_BusDevice
"""
import logging
from enum import IntEnum
from typing import NamedTuple, Optional, TYPE_CHECKING

from micropython import const

from adafruit_bus_device import i2c_device

if TYPE_CHECKING:
    from busio import I2C

__version__ = "1.0.0"

_LOG = logging.getLogger(__name__)

# Internal constants:
_TSL2591_ADDR = const(0x29)
_TSL2591_COMMAND_BIT = const(0xA0)
_TSL2591_DEVICE_ID = const(0x50)
_TSL2591_ENABLE_POWEROFF = const(0x00)
_TSL2591_ENABLE_POWERON = const(0x01)
_TSL2591_ENABLE_AEN = const(0x02)
_TSL2591_ENABLE_AIEN = const(0x10)
_TSL2591_ENABLE_NPIEN = const(0x80)

_TSL2591_GAIN_MASK = const(0b00110000)
_TSL2591_TIMING_MASK = const(0b00000111)

_TSL2591_LUX_DF = 408.0
_TSL2591_LUX_COEFB = 1.64
_TSL2591_LUX_COEFC = 0.59
_TSL2591_LUX_COEFD = 0.86
_TSL2591_MAX_COUNT_100MS = const(36863)  # 0x8FFF
_TSL2591_MAX_COUNT = const(65535)  # 0xFFFF


class Register(IntEnum):
    """8-bit register addresses used by the driver."""

    ENABLE = 0x00
    CONTROL = 0x01
    DEVICE_ID = 0x12
    CHAN0_LOW = 0x14
    CHAN1_LOW = 0x16


class Gain(IntEnum):
    """Analog gain, as the bit pattern of the control register gain field."""

    LOW = 0x00  # 1x
    MED = 0x10  # 25x
    HIGH = 0x20  # 428x
    MAX = 0x30  # 9876x

    @property
    def multiplier(self) -> float:
        """The analog gain factor used in the lux calculation."""
        return _GAIN_MULTIPLIERS[self]


_GAIN_MULTIPLIERS = {
    Gain.LOW: 1.0,
    Gain.MED: 25.0,
    Gain.HIGH: 428.0,
    Gain.MAX: 9876.0,
}


class IntegrationTime(IntEnum):
    """ALS integration time, as the code of the control register timing field."""

    TIME_100MS = 0x00
    TIME_200MS = 0x01
    TIME_300MS = 0x02
    TIME_400MS = 0x03
    TIME_500MS = 0x04
    TIME_600MS = 0x05

    @property
    def milliseconds(self) -> int:
        """Integration time in milliseconds."""
        return 100 * self.value + 100

    @property
    def max_counts(self) -> int:
        """Channel count at which a reading is considered saturated."""
        if self is IntegrationTime.TIME_100MS:
            return _TSL2591_MAX_COUNT_100MS
        return _TSL2591_MAX_COUNT


# User-facing constants:
GAIN_LOW = Gain.LOW
"""Low gain (1x)"""
GAIN_MED = Gain.MED
"""Medium gain (25x)"""
GAIN_HIGH = Gain.HIGH
"""High gain (428x)"""
GAIN_MAX = Gain.MAX
"""Max gain (9876x)"""
INTEGRATIONTIME_100MS = IntegrationTime.TIME_100MS
"""100 millis"""
INTEGRATIONTIME_200MS = IntegrationTime.TIME_200MS
"""200 millis"""
INTEGRATIONTIME_300MS = IntegrationTime.TIME_300MS
"""300 millis"""
INTEGRATIONTIME_400MS = IntegrationTime.TIME_400MS
"""400 millis"""
INTEGRATIONTIME_500MS = IntegrationTime.TIME_500MS
"""500 millis"""
INTEGRATIONTIME_600MS = IntegrationTime.TIME_600MS
"""600 millis"""


class TSL2591Error(RuntimeError):
    """Base class for errors raised by the TSL2591 driver."""


class TransportError(TSL2591Error):
    """An I2C transaction with the sensor failed.

    :param int address: The register address of the failed transaction
    :param str operation: The register operation that failed
    """

    def __init__(self, address: int, operation: str, reason: str = "") -> None:
        self.address = address
        self.operation = operation
        message = "{0} of register 0x{1:02X} failed".format(operation, address)
        if reason:
            message += ": " + reason
        super().__init__(message)


class UnexpectedDeviceIdentityError(TSL2591Error):
    """The device ID register did not hold the TSL2591 ID.

    Usually means the wrong device sits at the address, check wiring!
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            "received device ID 0x{0:02X} does not match expected device ID "
            "0x{1:02X}".format(actual, expected)
        )


class LuxOverflowError(TSL2591Error):
    """A light channel saturated for the current integration time."""

    def __init__(self, channel_0: int, channel_1: int, max_counts: int) -> None:
        self.channel_0 = channel_0
        self.channel_1 = channel_1
        self.max_counts = max_counts
        super().__init__(
            "Overflow reading light channels ({0}, {1} >= {2})! Try to reduce "
            "the gain or integration time of the sensor".format(
                channel_0, channel_1, max_counts
            )
        )


class SensorConfig(NamedTuple):
    """Gain and integration time of the sensor."""

    gain: Gain = Gain.MED
    integration_time: IntegrationTime = IntegrationTime.TIME_100MS


class RawReading(NamedTuple):
    """Raw counts of both photodiode channels.

    ``channel_0`` is IR + visible, ``channel_1`` is IR only.  Both are
    16-bit unsigned numbers (0-65535).
    """

    channel_0: int
    channel_1: int


class DerivedReading(NamedTuple):
    """Light values derived from a single raw reading.

    When a channel saturated, ``lux`` is ``None`` and ``overflow`` holds the
    :class:`LuxOverflowError`; the count based values are still valid.
    """

    full_spectrum: int
    visible: int
    infrared: int
    lux: Optional[float]
    overflow: Optional[LuxOverflowError] = None


def merge_gain(control: int, gain: int) -> int:
    """Return ``control`` with its gain field replaced by ``gain``."""
    gain = Gain(gain)
    return ((control & 0b11001111) | gain) & 0xFF


def merge_timing(control: int, integration_time: int) -> int:
    """Return ``control`` with its timing field replaced by ``integration_time``."""
    integration_time = IntegrationTime(integration_time)
    return ((control & 0b11111000) | integration_time) & 0xFF


def decode_control(control: int) -> SensorConfig:
    """Decode a control register byte into a :class:`SensorConfig`.

    Raises ``ValueError`` for a timing code outside the 100-600ms range.
    """
    return SensorConfig(
        Gain(control & _TSL2591_GAIN_MASK),
        IntegrationTime(control & _TSL2591_TIMING_MASK),
    )


def full_spectrum_of(channel_0: int, channel_1: int) -> int:
    """Pack both channels into one 32-bit value, channel 1 in the upper half."""
    return ((channel_1 & 0xFFFF) << 16) | (channel_0 & 0xFFFF)


def compute_lux(
    channel_0: int, channel_1: int, gain: int, integration_time: int
) -> float:
    """Calculate lux from raw channel counts.

    Uses the same dual equation as the Arduino library:
    https://github.com/adafruit/Adafruit_TSL2591_Library/blob/master/Adafruit_TSL2591.cpp

    :raises LuxOverflowError: if either channel is saturated for the
        integration time

    .. note::
        The result is not calibrated!
    """
    gain = Gain(gain)
    integration_time = IntegrationTime(integration_time)

    # Compute the atime in milliseconds
    atime = float(integration_time.milliseconds)

    # Handle overflow.
    max_counts = integration_time.max_counts
    if channel_0 >= max_counts or channel_1 >= max_counts:
        raise LuxOverflowError(channel_0, channel_1, max_counts)

    cpl = (atime * gain.multiplier) / _TSL2591_LUX_DF
    lux1 = (channel_0 - (_TSL2591_LUX_COEFB * channel_1)) / cpl
    lux2 = (
        (_TSL2591_LUX_COEFC * channel_0) - (_TSL2591_LUX_COEFD * channel_1)
    ) / cpl
    return max(lux1, lux2)


def derive_reading(raw: RawReading, config: SensorConfig) -> DerivedReading:
    """Turn a raw reading into full spectrum, visible, infrared and lux values.

    A saturated reading is returned with ``lux=None`` and the overflow error
    in ``overflow`` instead of raising.
    """
    channel_0, channel_1 = raw
    full = full_spectrum_of(channel_0, channel_1)
    try:
        lux = compute_lux(channel_0, channel_1, config.gain, config.integration_time)
    except LuxOverflowError as error:
        _LOG.debug("%s", error)
        return DerivedReading(full, full - channel_1, channel_1, None, error)
    return DerivedReading(
        full_spectrum=full,
        visible=full - channel_1,
        infrared=channel_1,
        lux=lux,
    )


class RegisterDevice:
    """Register level access to a TSL2591 behind an :class:`I2CDevice`.

    Every transaction starts with the command byte, the register address
    OR'd with the command bit.  Bus errors are raised as
    :class:`TransportError`, nothing is retried.

    :param ~adafruit_bus_device.i2c_device.I2CDevice device: The addressed device
    """

    def __init__(self, device: i2c_device.I2CDevice) -> None:
        self._device = device
        # Shared buffer for all transactions.
        # Note this is NOT thread-safe or re-entrant.
        self._buffer = bytearray(2)

    def read_u8(self, address: int) -> int:
        """Read an 8-bit unsigned value from the specified 8-bit address."""
        try:
            with self._device as i2c:
                self._buffer[0] = (_TSL2591_COMMAND_BIT | address) & 0xFF
                i2c.write_then_readinto(
                    self._buffer, self._buffer, out_end=1, in_end=1
                )
        except OSError as error:
            raise TransportError(address, "read_u8", str(error)) from error
        return self._buffer[0]

    def read_u16le(self, address: int) -> int:
        """Read a 16-bit little-endian unsigned value from the specified
        8-bit address."""
        try:
            with self._device as i2c:
                self._buffer[0] = (_TSL2591_COMMAND_BIT | address) & 0xFF
                i2c.write_then_readinto(
                    self._buffer, self._buffer, out_end=1, in_end=2
                )
        except OSError as error:
            raise TransportError(address, "read_u16le", str(error)) from error
        return (self._buffer[1] << 8) | self._buffer[0]

    def write_u8(self, address: int, val: int) -> None:
        """Write an 8-bit unsigned value to the specified 8-bit address."""
        try:
            with self._device as i2c:
                self._buffer[0] = (_TSL2591_COMMAND_BIT | address) & 0xFF
                self._buffer[1] = val & 0xFF
                i2c.write(self._buffer, end=2)
        except OSError as error:
            raise TransportError(address, "write_u8", str(error)) from error


class TSL2591:
    """TSL2591 high precision light sensor.

    :param ~busio.I2C i2c: The I2C bus the device is connected to
    :param int address: The I2C device address. Defaults to :const:`0x29`
    :param Gain gain: Initial gain. Defaults to :attr:`Gain.MED`
    :param IntegrationTime integration_time: Initial integration time.
        Defaults to :attr:`IntegrationTime.TIME_100MS`

    :raises UnexpectedDeviceIdentityError: if the device ID is not the TSL2591's
    :raises TransportError: if any bus transaction during setup fails


    **Quickstart: Importing and using the device**

        Here is an example of using the :class:`TSL2591` class.
        First you will need to import the libraries to use the sensor

        .. code-block:: python

            import board
            import tsl2591

        Once this is done you can define your `board.I2C` object and define your sensor object

        .. code-block:: python

            i2c = board.I2C()  # uses board.SCL and board.SDA
            sensor = tsl2591.TSL2591(i2c, gain=tsl2591.Gain.LOW)

        Now you have access to the :attr:`lux`, :attr:`infrared`
        :attr:`visible` and :attr:`full_spectrum` attributes

        .. code-block:: python

            lux = sensor.lux
            infrared = sensor.infrared
            visible = sensor.visible
            full_spectrum = sensor.full_spectrum

    The driver does no locking of its own: share one instance between
    threads only behind a lock of your own.
    """

    def __init__(
        self,
        i2c: "I2C",
        address: int = _TSL2591_ADDR,
        *,
        gain: int = Gain.MED,
        integration_time: int = IntegrationTime.TIME_100MS
    ) -> None:
        gain = Gain(gain)
        integration_time = IntegrationTime(integration_time)
        self._gain = gain
        self._integration_time = integration_time
        self._enabled = False
        # No probe, an absent device fails the ID read as a TransportError.
        self._registers = RegisterDevice(
            i2c_device.I2CDevice(i2c, address, probe=False)
        )
        # Verify the chip ID.
        device_id = self._registers.read_u8(Register.DEVICE_ID)
        if device_id != _TSL2591_DEVICE_ID:
            raise UnexpectedDeviceIdentityError(_TSL2591_DEVICE_ID, device_id)
        _LOG.debug("Found TSL2591 at address 0x%02X", address)
        # Gain and timing share the control register, set both in one write.
        self.configure(gain=gain, integration_time=integration_time)
        # Put the device in a powered on state after initialization.
        self.enable()

    def __enter__(self) -> "TSL2591":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        # A failing disable raises its TransportError even while another
        # exception propagates; that one stays reachable as __context__.
        self.disable()

    @property
    def enabled(self) -> bool:
        """Whether the last enable register write powered the device on."""
        return self._enabled

    def enable(self) -> None:
        """Put the device in a powered, enabled mode."""
        self._registers.write_u8(
            Register.ENABLE,
            _TSL2591_ENABLE_POWERON
            | _TSL2591_ENABLE_AEN
            | _TSL2591_ENABLE_AIEN
            | _TSL2591_ENABLE_NPIEN,
        )
        self._enabled = True
        _LOG.debug("TSL2591 enabled")

    def disable(self) -> None:
        """Disable the device and go into low power mode."""
        self._registers.write_u8(Register.ENABLE, _TSL2591_ENABLE_POWEROFF)
        self._enabled = False
        _LOG.debug("TSL2591 disabled")

    def configure(
        self,
        gain: "Optional[int]" = None,
        integration_time: "Optional[int]" = None,
    ) -> None:
        """Set gain and/or integration time with a single read-modify-write
        of the control register.  Fields left as ``None`` keep their
        current device value.
        """
        if gain is not None:
            gain = Gain(gain)
        if integration_time is not None:
            integration_time = IntegrationTime(integration_time)
        control = self._registers.read_u8(Register.CONTROL)
        if gain is not None:
            control = merge_gain(control, gain)
        if integration_time is not None:
            control = merge_timing(control, integration_time)
        self._registers.write_u8(Register.CONTROL, control)
        # Keep track of gain and integration time for future lux calculations.
        if gain is not None:
            self._gain = gain
        if integration_time is not None:
            self._integration_time = integration_time
        _LOG.debug("TSL2591 control register set to 0x%02X", control)

    def set_gain(self, gain: int) -> None:
        """Change the gain, leaving the integration time bits untouched."""
        self.configure(gain=gain)

    def set_integration_time(self, integration_time: int) -> None:
        """Change the integration time, leaving the gain bits untouched."""
        self.configure(integration_time=integration_time)

    @property
    def gain(self) -> Gain:
        """Get and set the gain of the sensor.  Can be a value of:

        - ``Gain.LOW`` (1x)
        - ``Gain.MED`` (25x)
        - ``Gain.HIGH`` (428x)
        - ``Gain.MAX`` (9876x)
        """
        return self._gain

    @gain.setter
    def gain(self, val: int) -> None:
        self.set_gain(val)

    @property
    def integration_time(self) -> IntegrationTime:
        """Get and set the integration time of the sensor.  Can be a value of:

        - ``IntegrationTime.TIME_100MS`` (100 millis)
        - ``IntegrationTime.TIME_200MS`` (200 millis)
        - ``IntegrationTime.TIME_300MS`` (300 millis)
        - ``IntegrationTime.TIME_400MS`` (400 millis)
        - ``IntegrationTime.TIME_500MS`` (500 millis)
        - ``IntegrationTime.TIME_600MS`` (600 millis)
        """
        return self._integration_time

    @integration_time.setter
    def integration_time(self, val: int) -> None:
        self.set_integration_time(val)

    @property
    def config(self) -> SensorConfig:
        """The gain and integration time last written to the device."""
        return SensorConfig(self._gain, self._integration_time)

    def read_config(self) -> SensorConfig:
        """Read the gain and integration time back from the control register.

        :raises TSL2591Error: if the timing field holds a code outside 100-600ms
        """
        control = self._registers.read_u8(Register.CONTROL)
        try:
            return decode_control(control)
        except ValueError as error:
            raise TSL2591Error(
                "control register 0x{0:02X} holds an unknown integration time "
                "code {1}".format(control, control & _TSL2591_TIMING_MASK)
            ) from error

    @property
    def raw_luminosity(self) -> RawReading:
        """Read the raw luminosity from the sensor (both IR + visible and IR
        only channels) and return a 2-tuple of those values.  The first value
        is IR + visible luminosity (channel 0) and the second is the IR only
        (channel 1).  Both values are 16-bit unsigned numbers (0-65535).
        """
        # Read both the luminosity channels.
        channel_0 = self._registers.read_u16le(Register.CHAN0_LOW)
        channel_1 = self._registers.read_u16le(Register.CHAN1_LOW)
        return RawReading(channel_0, channel_1)

    @property
    def full_spectrum(self) -> int:
        """Read the full spectrum (IR + visible) light and return its value
        as a 32-bit unsigned number.
        """
        channel_0, channel_1 = self.raw_luminosity
        return full_spectrum_of(channel_0, channel_1)

    @property
    def infrared(self) -> int:
        """Read the infrared light and return its value as a 16-bit unsigned number."""
        _, channel_1 = self.raw_luminosity
        return channel_1

    @property
    def visible(self) -> int:
        """Read the visible light and return its value as a 32-bit unsigned number."""
        channel_0, channel_1 = self.raw_luminosity
        return full_spectrum_of(channel_0, channel_1) - channel_1

    @property
    def lux(self) -> float:
        """Read the sensor and calculate a lux value from both its infrared
        and visible light channels.

        :raises LuxOverflowError: if a channel saturated, reduce the gain or
            integration time and read again

        .. note::
            :attr:`lux` is not calibrated!

        """
        channel_0, channel_1 = self.raw_luminosity
        return compute_lux(channel_0, channel_1, self._gain, self._integration_time)

    def read(self) -> DerivedReading:
        """Read both channels once and derive all light values from them.

        Unlike :attr:`lux`, a saturated reading does not raise: check
        ``reading.overflow`` (or ``reading.lux is None``).
        """
        return derive_reading(self.raw_luminosity, self.config)
