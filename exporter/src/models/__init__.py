"""
Models package for ControlPlaneMachineSet data structures
"""

from .cpms import (
    OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE,
    ObjectMeta,
    ProviderSpec,
    MachineSpec,
    FailureDomains,
    OpenShiftMachineV1Beta1MachineTemplate,
    ControlPlaneMachineSetTemplate,
    ControlPlaneMachineSetSpec,
    ControlPlaneMachineSet,
    AWSMachineProviderConfig,
    GCPMachineProviderSpec,
    ReconcileResult,
)

__all__ = [
    "OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE",
    "ObjectMeta",
    "ProviderSpec",
    "MachineSpec",
    "FailureDomains",
    "OpenShiftMachineV1Beta1MachineTemplate",
    "ControlPlaneMachineSetTemplate",
    "ControlPlaneMachineSetSpec",
    "ControlPlaneMachineSet",
    "AWSMachineProviderConfig",
    "GCPMachineProviderSpec",
    "ReconcileResult",
]
