"""Collaborator interfaces and adapters: registry transport and credential store."""
