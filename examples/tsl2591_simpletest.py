# SPDX-FileCopyrightText: 2017 Tony DiCola for Adafruit Industries
#
# SPDX-License-Identifier: MIT

# Simple demo of the TSL2591 sensor.  Will print the detected light values
# every second until interrupted, then power the sensor down.
import time

import board

import tsl2591

# Initialize the I2C bus.
i2c = board.I2C()  # uses board.SCL and board.SDA

# Initialize the sensor.  Gain and integration time can be chosen here:
#   gain: tsl2591.Gain.LOW (1x), MED (25x, the default), HIGH (428x), MAX (9876x)
#   integration_time: tsl2591.IntegrationTime.TIME_100MS (default) .. TIME_600MS
with tsl2591.TSL2591(
    i2c,
    gain=tsl2591.Gain.LOW,
    integration_time=tsl2591.IntegrationTime.TIME_600MS,
) as sensor:
    # You can also change them later:
    # sensor.gain = tsl2591.Gain.HIGH
    # sensor.integration_time = tsl2591.IntegrationTime.TIME_200MS
    while True:
        reading = sensor.read()
        if reading.overflow is not None:
            print(reading.overflow)
        else:
            print("Total light: {0}lux".format(reading.lux))
        print("Infrared light: {0}".format(reading.infrared))
        print("Visible light: {0}".format(reading.visible))
        print("Full spectrum (IR + visible) light: {0}".format(reading.full_spectrum))
        time.sleep(1.0)
