"""Request synthesis, execution and the interactive mutation loop."""
