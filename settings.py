"""
Persisted user preferences.

Saved as JSON in the user's home directory so they survive across
sessions: animation speed, per-family default delays and the input
limits used by the structure builders.
"""

import json
import logging
import os

from playback import clamp_delay, DEFAULT_DELAY_MS
from structures import MAX_ARRAY_SIZE, MAX_TREE_SIZE, MIN_VALUE, MAX_VALUE

logger = logging.getLogger(__name__)

# Default playback delay (ms) per algorithm family.
FAMILY_DELAYS = {
    "sorting":   800,
    "searching": 1000,
    "trees":     1500,
    "graphs":    2000,
}


class Settings:
    """
    Persistent user preferences manager.

    Attributes:
        anim_speed     (int) : Default milliseconds per playback tick.
        family_delays  (dict): Family name → delay override (ms).
        max_array_size (int) : Element cap for arrays / search input.
        max_tree_size  (int) : Node cap for trees.
        value_range    (tuple): Inclusive (min, max) accepted values.

    File location:  ~/.algoviz_v1.json  (or ``path`` if given)
    """
    _PATH = os.path.join(os.path.expanduser("~"), ".algoviz_v1.json")

    def __init__(self, path=None):
        self.path           = path or self._PATH
        self.anim_speed     = DEFAULT_DELAY_MS
        self.family_delays  = dict(FAMILY_DELAYS)
        self.max_array_size = MAX_ARRAY_SIZE
        self.max_tree_size  = MAX_TREE_SIZE
        self.value_range    = (MIN_VALUE, MAX_VALUE)
        self._load()

    # ── Load from disk ──────────────────────────────────────────
    def _load(self):
        """
        Read the JSON file.

        A missing or unreadable file keeps every default; a field with
        a wrong-typed value keeps only that field's default.
        """
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path) as f:
                d = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return
        if not isinstance(d, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self.path)
            return

        self.anim_speed     = self._field(d, "anim_speed", clamp_delay, self.anim_speed)
        self.max_array_size = self._field(d, "max_array_size", _positive_int,
                                          self.max_array_size)
        self.max_tree_size  = self._field(d, "max_tree_size", _positive_int,
                                          self.max_tree_size)
        self.value_range    = self._field(d, "value_range", _value_range,
                                          self.value_range)

        delays = d.get("family_delays") or {}
        if not isinstance(delays, dict):
            logger.warning("Ignoring settings field family_delays: not a JSON object")
            return
        for family, delay in delays.items():
            if family in self.family_delays:
                self.family_delays[family] = self._field(
                    delays, family, int, self.family_delays[family])

    def _field(self, d, key, convert, default):
        if key not in d:
            return default
        try:
            return convert(d[key])
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring settings field %s=%r in %s: %s",
                           key, d[key], self.path, e)
            return default

    # ── Save to disk ────────────────────────────────────────────
    def save(self):
        with open(self.path, "w") as f:
            json.dump({"anim_speed":     self.anim_speed,
                       "family_delays":  self.family_delays,
                       "max_array_size": self.max_array_size,
                       "max_tree_size":  self.max_tree_size,
                       "value_range":    list(self.value_range)}, f, indent=2)
        logger.debug("Saved settings to %s", self.path)

    def delay_for(self, family):
        """
        Tick delay for an algorithm family.

        The family default is used when one exists, clamped to the
        range the playback controller accepts.
        """
        return clamp_delay(self.family_delays.get(family, self.anim_speed))


def _positive_int(value):
    if isinstance(value, bool):
        raise TypeError("expected a number")
    value = int(value)
    if value < 1:
        raise ValueError("must be at least 1")
    return value


def _value_range(value):
    """``[lo, hi]`` within the accepted input range, lo <= hi."""
    lo, hi = (_positive_int(v) for v in value)
    if not MIN_VALUE <= lo <= hi <= MAX_VALUE:
        raise ValueError(f"must satisfy {MIN_VALUE} <= lo <= hi <= {MAX_VALUE}")
    return (lo, hi)
