"""Modelo de domínio da FSM: fases, erros e definição."""
