"""Device enumeration and drive diagnostics."""
from sctercset.discovery.devices import DeviceEnumerator
from sctercset.discovery.smartctl import SmartctlProbe

__all__ = ['DeviceEnumerator', 'SmartctlProbe']
