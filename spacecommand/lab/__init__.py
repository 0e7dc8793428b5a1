"""HTTP combat lab for poking at the engine from a browser or script."""
