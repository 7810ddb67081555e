"""
Device registry - devices already announced to Home Assistant
"""


class DeviceRegistry:
    """
    Device ids seen during this process lifetime.

    Grow-only and in-memory: after a restart every device is announced
    again. Owned by the consume loop, not thread-safe.
    """

    def __init__(self):
        self._seen: set[str] = set()

    def is_known(self, device_id: str) -> bool:
        return device_id in self._seen

    def record(self, device_id: str) -> None:
        self._seen.add(device_id)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)
