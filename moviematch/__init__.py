"""MovieMatch - group movie selection: stop-on-match voting over a resilient catalog."""
