"""Define error messages for the Neural Reinforcement package."""

ERROR_PERT_UNBOUNDED_RANGE = (
    "PERT sampling requires two finite output bounds. "
    "Use a bounded output activation (sigmoid, sigmoid_sim, tanh) or the `normal` sampling method."
)
ERROR_LAYERS_DIMENSION_MISMATCH = (
    "Cannot chain networks: the head outputs {head_outputs} values "
    "but the tail expects {tail_inputs} inputs."
)
ERROR_LAYER_EMPTY = "A layer needs at least one input and one output, got {inputs}x{outputs}."
ERROR_INPUT_DIMENSION_MISMATCH = "Expected an input of length {expected}, got {actual}."
ERROR_DELTA_DIMENSION_MISMATCH = "Expected a delta of length {expected}, got {actual}."
ERROR_GRADIENT_SHAPE_MISMATCH = (
    "Cannot add gradients of networks with different shapes: {expected} and {actual}."
)
ERROR_GRADIENT_STRUCTURE_MISMATCH = (
    "Cannot add gradients of a {expected} and a {actual}; the network structures differ."
)
ERROR_UNKNOWN_ACTIVATION = "Unknown activation '{name}'. Valid activations: {valid}."
ERROR_SCORE_NETWORK_OUTPUT = "The score network must output a single value, got {outputs}."
ERROR_SCORE_NETWORK_INPUT = (
    "The score network expects {score_inputs} inputs but the policy expects {policy_inputs}."
)
ERROR_EMPTY_CONTEXTS = "Reinforcement requires at least one context."
