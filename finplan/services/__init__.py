"""Computation core: series primitives, assemblers and the utilization engine."""
