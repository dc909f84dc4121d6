"""Hand tracking control plane."""
