"""EV charging station and owner account service."""
