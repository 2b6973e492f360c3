"""Feed-forward networks and policy-gradient reinforcement from scratch."""
