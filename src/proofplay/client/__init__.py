"""Client side of the game: transport, presentation and the game controller."""
