"""Display names for Android API levels."""

from __future__ import annotations

ANDROID_VERSIONS = {
    "21": "5.0 (Lollipop)",
    "23": "6.0 (Marshmallow)",
    "26": "8.0 (Oreo)",
    "28": "9.0 (Pie)",
    "31": "12 (S)",
    "34": "14 (U)",
}

DEFAULT_DEVICES = {
    "21": "Nexus 5",
    "23": "Nexus 6",
    "26": "Pixel 2",
    "28": "Pixel 3",
    "31": "Pixel 4",
    "34": "Pixel 6",
}


def android_version(api_level: str) -> str:
    return ANDROID_VERSIONS.get(str(api_level), f"API {api_level}")


def device_name(api_level: str) -> str:
    return DEFAULT_DEVICES.get(str(api_level), "Generic Device")
