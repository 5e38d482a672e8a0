#!/usr/bin/env python3
"""
Provider decoding: turns a control-plane machine template into an instance type

Each supported platform registers one decoder that parses the opaque
providerSpec blob and returns the configured compute size. Anything without a
registered decoder is rejected with UnsupportedPlatform.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional, Type
from pydantic import BaseModel, ValidationError

from models.cpms import (
    OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE,
    AWSMachineProviderConfig,
    ControlPlaneMachineSetTemplate,
    GCPMachineProviderSpec,
    ProviderBlob,
)
from .errors import MalformedProviderSpec, UnsupportedMachineKind, UnsupportedPlatform

logger = logging.getLogger(__name__)

PLATFORM_AWS = "AWS"
PLATFORM_GCP = "GCP"

SUPPORTED_MACHINE_TYPES = frozenset({
    OPENSHIFT_MACHINE_V1BETA1_MACHINE_TYPE,
    "OpenShiftMachineV1Beta1Machine",
})

ProviderDecoder = Callable[[Optional[ProviderBlob]], str]

PROVIDER_DECODERS: Dict[str, ProviderDecoder] = {}


def register_decoder(platform: str) -> Callable[[ProviderDecoder], ProviderDecoder]:
    """Register a decoder for a platform tag"""
    def decorator(func: ProviderDecoder) -> ProviderDecoder:
        PROVIDER_DECODERS[platform] = func
        return func
    return decorator


def _load_provider_config(platform: str, blob: Optional[ProviderBlob], model: Type[BaseModel]) -> Any:
    """
    Parse a provider blob into the given pydantic model

    Args:
        platform: Platform tag, used for error reporting
        blob: Decoded JSON object or raw JSON text/bytes
        model: Provider configuration model

    Returns:
        Parsed provider configuration

    Raises:
        MalformedProviderSpec: If the blob is missing or does not fit the model
    """
    if blob is None:
        raise MalformedProviderSpec(platform, "providerSpec.value is empty")

    if isinstance(blob, (str, bytes)):
        try:
            blob = json.loads(blob)
        except (ValueError, UnicodeDecodeError) as e:
            raise MalformedProviderSpec(platform, f"invalid JSON: {e}") from e

    if not isinstance(blob, dict):
        raise MalformedProviderSpec(platform, f"expected an object, got {type(blob).__name__}")

    try:
        return model.model_validate(blob)
    except ValidationError as e:
        raise MalformedProviderSpec(platform, str(e)) from e


@register_decoder(PLATFORM_AWS)
def decode_aws(blob: Optional[ProviderBlob]) -> str:
    return _load_provider_config(PLATFORM_AWS, blob, AWSMachineProviderConfig).instance_type


@register_decoder(PLATFORM_GCP)
def decode_gcp(blob: Optional[ProviderBlob]) -> str:
    return _load_provider_config(PLATFORM_GCP, blob, GCPMachineProviderSpec).machine_type


def extract_instance_type(template: ControlPlaneMachineSetTemplate) -> str:
    """
    Resolve the instance type declared by a control-plane machine template

    Args:
        template: spec.template of a ControlPlaneMachineSet

    Returns:
        The provider's configured instance type, unmodified

    Raises:
        UnsupportedMachineKind: If the template is not an OpenShift v1beta1 machine template
        UnsupportedPlatform: If no decoder is registered for the declared platform
        MalformedProviderSpec: If the provider blob cannot be parsed
    """
    if template.machine_type not in SUPPORTED_MACHINE_TYPES:
        raise UnsupportedMachineKind(template.machine_type)

    machine = template.openshift_machine_v1beta1_machine
    if machine is None:
        raise UnsupportedMachineKind(template.machine_type)

    platform = machine.platform
    decoder = PROVIDER_DECODERS.get(platform)
    if decoder is None:
        raise UnsupportedPlatform(platform)

    instance_type = decoder(machine.spec.provider_spec.value)
    logger.debug(f"Decoded {platform} instance type: {instance_type}")
    return instance_type
