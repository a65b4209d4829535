# SPDX-FileCopyrightText: 2017 Tony DiCola for Adafruit Industries
#
# SPDX-License-Identifier: MIT

"""Tests for the bus independent register math and lux calculation."""

import unittest

import tsl2591
from tsl2591 import Gain, IntegrationTime


class TestControlMerge(unittest.TestCase):
    def test_merge_gain_keeps_other_bits(self):
        for timing in IntegrationTime:
            control = 0b11000000 | timing | Gain.HIGH
            for gain in Gain:
                merged = tsl2591.merge_gain(control, gain)
                self.assertEqual(merged & 0b00110000, gain)
                self.assertEqual(merged & 0b11001111, control & 0b11001111)

    def test_merge_timing_keeps_other_bits(self):
        for gain in Gain:
            control = 0b11000000 | gain | IntegrationTime.TIME_400MS
            for timing in IntegrationTime:
                merged = tsl2591.merge_timing(control, timing)
                self.assertEqual(merged & 0b00000111, timing)
                self.assertEqual(merged & 0b11111000, control & 0b11111000)

    def test_merge_rejects_unknown_codes(self):
        with self.assertRaises(ValueError):
            tsl2591.merge_gain(0, 0x40)
        with self.assertRaises(ValueError):
            tsl2591.merge_timing(0, 6)

    def test_decode_control(self):
        config = tsl2591.decode_control(0x80 | Gain.MAX | IntegrationTime.TIME_300MS)
        self.assertEqual(config, tsl2591.SensorConfig(Gain.MAX, IntegrationTime.TIME_300MS))


class TestEnumerations(unittest.TestCase):
    def test_gain_multipliers(self):
        self.assertEqual(Gain.LOW.multiplier, 1.0)
        self.assertEqual(Gain.MED.multiplier, 25.0)
        self.assertEqual(Gain.HIGH.multiplier, 428.0)
        self.assertEqual(Gain.MAX.multiplier, 9876.0)

    def test_integration_time_milliseconds(self):
        self.assertEqual(
            [t.milliseconds for t in IntegrationTime], [100, 200, 300, 400, 500, 600]
        )

    def test_max_counts(self):
        self.assertEqual(IntegrationTime.TIME_100MS.max_counts, 0x8FFF)
        for timing in list(IntegrationTime)[1:]:
            self.assertEqual(timing.max_counts, 0xFFFF)

    def test_legacy_constants(self):
        self.assertEqual(tsl2591.GAIN_MED, 0x10)
        self.assertEqual(tsl2591.INTEGRATIONTIME_600MS, 0x05)

    def test_default_config(self):
        self.assertEqual(
            tsl2591.SensorConfig(), (Gain.MED, IntegrationTime.TIME_100MS)
        )


class TestComputeLux(unittest.TestCase):
    def test_low_gain_100ms(self):
        cpl = 100 * 1 / 408.0
        lux1 = (51 - 1.64 * 14) / cpl
        lux2 = (0.59 * 51 - 0.86 * 14) / cpl
        lux = tsl2591.compute_lux(51, 14, Gain.LOW, IntegrationTime.TIME_100MS)
        self.assertGreater(lux1, lux2)
        self.assertEqual(lux, lux1)
        self.assertAlmostEqual(lux, 114.4032, places=3)

    def test_second_formula_wins_when_larger(self):
        # Infrared heavy light makes the second estimate the larger one.
        lux = tsl2591.compute_lux(1000, 900, Gain.MED, IntegrationTime.TIME_200MS)
        cpl = 200 * 25 / 408.0
        self.assertAlmostEqual(lux, (0.59 * 1000 - 0.86 * 900) / cpl)

    def test_scales_with_gain_and_time(self):
        low = tsl2591.compute_lux(5000, 1000, Gain.LOW, IntegrationTime.TIME_100MS)
        high = tsl2591.compute_lux(5000, 1000, Gain.MAX, IntegrationTime.TIME_600MS)
        self.assertAlmostEqual(low / high, 9876.0 * 6)

    def test_overflow_at_100ms(self):
        for counts in ((0x8FFF, 0), (0, 0x8FFF), (0xFFFF, 0xFFFF)):
            with self.assertRaises(tsl2591.LuxOverflowError) as context:
                tsl2591.compute_lux(
                    counts[0], counts[1], Gain.LOW, IntegrationTime.TIME_100MS
                )
            self.assertEqual(context.exception.max_counts, 0x8FFF)
        tsl2591.compute_lux(0x8FFE, 0, Gain.LOW, IntegrationTime.TIME_100MS)

    def test_overflow_at_longer_times(self):
        for timing in list(IntegrationTime)[1:]:
            tsl2591.compute_lux(0x8FFF, 0x8FFF, Gain.LOW, timing)
            with self.assertRaises(tsl2591.LuxOverflowError):
                tsl2591.compute_lux(0xFFFF, 0, Gain.LOW, timing)
            with self.assertRaises(tsl2591.LuxOverflowError):
                tsl2591.compute_lux(0, 0xFFFF, Gain.LOW, timing)

    def test_derive_reading(self):
        reading = tsl2591.derive_reading(
            tsl2591.RawReading(0x0033, 0x000E),
            tsl2591.SensorConfig(Gain.LOW, IntegrationTime.TIME_100MS),
        )
        self.assertEqual(reading.full_spectrum, 917555)
        self.assertEqual(reading.visible, 917541)
        self.assertEqual(reading.infrared, 14)
        self.assertAlmostEqual(reading.lux, 114.4032, places=3)
        self.assertIsNone(reading.overflow)

    def test_derive_reading_overflow(self):
        reading = tsl2591.derive_reading(
            tsl2591.RawReading(0x9000, 0x0010),
            tsl2591.SensorConfig(Gain.LOW, IntegrationTime.TIME_100MS),
        )
        self.assertIsNone(reading.lux)
        self.assertIsInstance(reading.overflow, tsl2591.LuxOverflowError)
        self.assertEqual(reading.full_spectrum, 0x00109000)
        self.assertEqual(reading.infrared, 0x10)


if __name__ == "__main__":
    unittest.main()
