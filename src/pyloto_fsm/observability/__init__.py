"""Logging estruturado e contexto de dispatch."""
