"""Camada de aplicação: opções, validação, pipeline de hooks e dispatch."""
