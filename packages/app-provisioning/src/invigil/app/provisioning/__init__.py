"""Invigil App Provisioning -- settings and composition root."""

from invigil.app.provisioning.container import ProvisioningContainer, build_container
from invigil.app.provisioning.settings import ProvisioningSettings, get_provisioning_settings

__all__ = [
    "ProvisioningContainer",
    "ProvisioningSettings",
    "build_container",
    "get_provisioning_settings",
]
