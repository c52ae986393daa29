"""Voice session core: state machine, transcript store, routing, metering."""
