"""
Tests for the device registry.
"""


class TestDeviceRegistry:
    """Tests for DeviceRegistry."""

    def test_starts_empty(self):
        """A new registry knows no devices."""
        from ruuvitag_additions.services.registry import DeviceRegistry

        registry = DeviceRegistry()

        assert len(registry) == 0
        assert not registry.is_known("D4:D8:D8:CB:34:6C")

    def test_record_makes_known(self):
        """Recording one device does not make others known."""
        from ruuvitag_additions.services.registry import DeviceRegistry

        registry = DeviceRegistry()
        registry.record("D4:D8:D8:CB:34:6C")

        assert registry.is_known("D4:D8:D8:CB:34:6C")
        assert "D4:D8:D8:CB:34:6C" in registry
        assert not registry.is_known("C6:CF:C7:26:7C:2B")

    def test_record_is_idempotent(self):
        """Recording twice keeps a single entry."""
        from ruuvitag_additions.services.registry import DeviceRegistry

        registry = DeviceRegistry()
        registry.record("D4:D8:D8:CB:34:6C")
        registry.record("D4:D8:D8:CB:34:6C")

        assert registry.is_known("D4:D8:D8:CB:34:6C")
        assert len(registry) == 1

    def test_new_registry_forgets_devices(self):
        """State is per process lifetime only."""
        from ruuvitag_additions.services.registry import DeviceRegistry

        registry = DeviceRegistry()
        registry.record("D4:D8:D8:CB:34:6C")

        assert not DeviceRegistry().is_known("D4:D8:D8:CB:34:6C")
