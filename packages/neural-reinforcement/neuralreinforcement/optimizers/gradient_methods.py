"""Gradient post-processing methods and advantage squashing."""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING

from neuralreinforcement.dtypes import AdvantageScaling, Float

if TYPE_CHECKING:
    from neuralreinforcement.network._network import Network

DEFAULT_MAX_GRADIENT_NORM = 1.0


class GradientCalculationMethod(Enum):
    """Gradient calculation methods."""

    RAW = "raw"  # Keep gradients as is
    NORMALIZE = "normalize"  # Rescale to unit L2 norm
    NORM_CLIP = "norm_clip"  # Clip the L2 norm to a maximum


def compute_gradients(
    network: Network,
    method: GradientCalculationMethod,
    max_gradient_norm: Float = DEFAULT_MAX_GRADIENT_NORM,
) -> Float:
    """
    Post-process the gradient buffer of a network in place.

    Parameters
    ----------
    network : Network
        Network whose gradient is processed.
    method : GradientCalculationMethod
        The method to use for processing gradients.
    max_gradient_norm : float, optional
        The maximum norm for the NORM_CLIP method. Defaults to 1.0.

    Returns
    -------
    float
        The L2 norm of the gradient before processing.
    """
    match method:
        case GradientCalculationMethod.RAW:
            return math.sqrt(network.norm2_gradient())
        case GradientCalculationMethod.NORMALIZE:
            return network.normalize_gradient()
        case GradientCalculationMethod.NORM_CLIP:
            # Clip gradient vector by total norm, based on PyTorch's clip_grad_norm_
            grad_norm = math.sqrt(network.norm2_gradient())
            if grad_norm > max_gradient_norm:
                network.rescale_gradient(max_gradient_norm / grad_norm)
            return grad_norm


def scale_advantage(advantage: Float, scaling: AdvantageScaling) -> Float:
    """
    Squash an advantage into a bounded gradient scale.

    - ATAN: ``atan(advantage)``, in (-pi/2, pi/2), keeps the sign
    - SIGMOID: ``1 / (1 + exp(-advantage))``, in (0, 1)

    Parameters
    ----------
    advantage : float
        Realized reward minus its baseline.
    scaling : AdvantageScaling
        Squashing function.

    Returns
    -------
    float
        The factor applied to a normalized episode gradient.
    """
    match scaling:
        case AdvantageScaling.ATAN:
            return math.atan(advantage)
        case AdvantageScaling.SIGMOID:
            if advantage < 0.0:
                # exp(-advantage) overflows for very negative advantages
                e = math.exp(advantage)
                return e / (1.0 + e)
            return 1.0 / (1.0 + math.exp(-advantage))
