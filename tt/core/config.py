import json
from tt.common.logger import log
from tt.common.setup import PATHS


#region === Helpers and Paths ===

TASKS_PATH = PATHS.current / "tasks.json"
SETTINGS_PATH = PATHS.current / "settings.json"

# Default values for every setting, and the type each one must have.
_SETTINGS_DEFAULTS = {
    "tick_interval_ms": 1000,
    "refresh_interval_ms": 1000,
    "badge_color": "#2ecc71",
    "confirm_delete": True,
    "always_on_top": False,
    "theme": "Light",
}

# Helper to return a truly fresh, default settings dict.
def build_default_settings():
    return dict(_SETTINGS_DEFAULTS)

#endregion === Helpers and Paths ===

#region === Saving and Loading Settings ===

# Loads settings from SETTINGS_PATH, defaulting any missing or wrongly-typed keys. Never raises.
def load_settings():
    try:
        if not SETTINGS_PATH.exists():
            log.info("No existing settings.json found in `current`, using default settings.")
            return build_default_settings()

        with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            log.warning(f"Settings at '{SETTINGS_PATH}' are not a JSON object, using default settings.")
            return build_default_settings()

        settings = {}
        defaulted_values = set()
        for key, default in _SETTINGS_DEFAULTS.items():
            value = raw.get(key)
            # bool is an int subclass, so check it explicitly
            if value is None or type(value) is not type(default):
                defaulted_values.add(key)
                settings[key] = default
            else:
                settings[key] = value

        # Intervals below 100ms would just hammer storage
        for key in ("tick_interval_ms", "refresh_interval_ms"):
            if settings[key] < 100:
                defaulted_values.add(key)
                settings[key] = _SETTINGS_DEFAULTS[key]

        # Log results
        if defaulted_values:
            log.warning(f"Loaded settings from '{SETTINGS_PATH}', but with missing or invalid values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{SETTINGS_PATH}'.")
        return settings
    # Fall back to defaults in case of error, but warn in log
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        log.warning("Ran into an error while trying to load settings.json, falling back to default settings.", exc_info=True)
        return build_default_settings()

# Write the given settings to disk under SETTINGS_PATH
def save_settings(settings):
    with open(SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)
    log.info(f"Successfully saved settings to '{SETTINGS_PATH}'")

#endregion === Saving and Loading Settings ===
