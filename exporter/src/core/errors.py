#!/usr/bin/env python3
"""
Exception types raised while turning a ControlPlaneMachineSet into metrics
"""

from typing import Optional


class ExporterError(Exception):
    """Base class for exporter errors"""


class DecodeError(ExporterError):
    """The machine template could not be interpreted into an instance type"""


class UnsupportedPlatform(DecodeError):
    """The declared cloud platform has no decoder"""

    def __init__(self, platform: Optional[str]):
        self.platform = platform
        super().__init__(f"unsupported platform: {platform!r}")


class UnsupportedMachineKind(DecodeError):
    """The template discriminator is not a recognized machine kind"""

    def __init__(self, machine_type: Optional[str]):
        self.machine_type = machine_type
        super().__init__(f"unsupported machine type: {machine_type!r}")


class MalformedProviderSpec(DecodeError):
    """The provider blob failed to deserialize"""

    def __init__(self, platform: Optional[str], reason: str):
        self.platform = platform
        self.reason = reason
        super().__init__(f"malformed {platform} provider spec: {reason}")


class InvalidDeclaredState(ExporterError):
    """spec.state is neither 'Active' nor 'Inactive'"""

    def __init__(self, state: Optional[str]):
        self.state = state
        super().__init__(f"invalid controlplanemachineset state: {state!r}")


class InvalidResourceError(ExporterError):
    """The fetched object does not match the ControlPlaneMachineSet schema"""


class ClusterIDNotFoundError(ExporterError):
    """The cluster identifier could not be discovered"""
