#!/usr/bin/env python3
"""
Pydantic models for the ControlPlaneMachineSet resource and provider configs
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


# Wire value of the OpenShiftMachineV1Beta1Machine template kind
OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE = "machines_v1beta1_machine_openshift_io"

# Provider blob as found in providerSpec.value: usually a decoded JSON object
# from the Kubernetes client, sometimes raw serialized JSON. Left untyped here,
# the platform decoder decides whether it is usable.
ProviderBlob = Any


class ObjectMeta(BaseModel):
    """Subset of Kubernetes object metadata"""
    name: str = Field(..., description="Object name")
    namespace: Optional[str] = Field(None, description="Object namespace")
    resource_version: Optional[str] = Field(None, alias="resourceVersion")

    class Config:
        populate_by_name = True
        extra = "ignore"


class ProviderSpec(BaseModel):
    """Opaque cloud-provider configuration"""
    value: Optional[ProviderBlob] = Field(None, description="Serialized provider configuration")

    class Config:
        extra = "ignore"


class MachineSpec(BaseModel):
    """Machine spec embedded in the control-plane machine template"""
    provider_spec: ProviderSpec = Field(default_factory=ProviderSpec, alias="providerSpec")

    class Config:
        populate_by_name = True
        extra = "ignore"


class FailureDomains(BaseModel):
    """Failure domain declaration, only the platform tag is used"""
    platform: Optional[str] = Field(None, description="Declared cloud platform, e.g. 'AWS'")

    class Config:
        extra = "ignore"


class OpenShiftMachineV1Beta1MachineTemplate(BaseModel):
    """Machine template for machine.openshift.io/v1beta1 machines"""
    spec: MachineSpec = Field(default_factory=MachineSpec)
    failure_domains: Optional[FailureDomains] = Field(None, alias="failureDomains")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @property
    def platform(self) -> Optional[str]:
        if self.failure_domains is None:
            return None
        return self.failure_domains.platform


class ControlPlaneMachineSetTemplate(BaseModel):
    """Discriminated template of a ControlPlaneMachineSet"""
    machine_type: str = Field("", alias="machineType", description="Template kind discriminator")
    openshift_machine_v1beta1_machine: Optional[OpenShiftMachineV1Beta1MachineTemplate] = Field(
        None, alias=OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE
    )

    class Config:
        populate_by_name = True
        extra = "ignore"


class ControlPlaneMachineSetSpec(BaseModel):
    """Desired state of a ControlPlaneMachineSet"""
    state: Optional[str] = Field(None, description="'Active' or 'Inactive'")
    replicas: Optional[int] = Field(None, ge=0)
    template: ControlPlaneMachineSetTemplate = Field(default_factory=ControlPlaneMachineSetTemplate)

    class Config:
        extra = "ignore"


class ControlPlaneMachineSet(BaseModel):
    """machine.openshift.io/v1 ControlPlaneMachineSet"""
    api_version: str = Field("machine.openshift.io/v1", alias="apiVersion")
    kind: str = Field("ControlPlaneMachineSet")
    metadata: ObjectMeta
    spec: ControlPlaneMachineSetSpec = Field(default_factory=ControlPlaneMachineSetSpec)

    class Config:
        populate_by_name = True
        extra = "ignore"


class AWSMachineProviderConfig(BaseModel):
    """AWS provider configuration, only the instance size is used"""
    instance_type: str = Field(..., alias="instanceType", description="EC2 instance type")

    class Config:
        populate_by_name = True
        extra = "ignore"


class GCPMachineProviderSpec(BaseModel):
    """GCP provider configuration, only the machine size is used"""
    machine_type: str = Field(..., alias="machineType", description="GCE machine type")

    class Config:
        populate_by_name = True
        extra = "ignore"


class ReconcileResult(BaseModel):
    """Outcome of a single reconcile call"""
    requeue: bool = Field(False, description="Whether the request should be requeued")
    requeue_after: float = Field(0.0, ge=0, description="Delay before requeue in seconds")
