"""Core components: graph store, persistence gateways, persona responders and factories."""
