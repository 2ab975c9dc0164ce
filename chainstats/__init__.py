"""Chain statistics core: node client, argument normalizer and dashboard aggregator."""
