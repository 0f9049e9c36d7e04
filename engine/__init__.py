"""Decision engine: board model, combat odds, what-if simulation and the turn planners."""
